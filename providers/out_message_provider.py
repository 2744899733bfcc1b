import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Response

from messaging_sdk.codecs.temporal import format_datetime, parse_datetime
from messaging_sdk.exceptions import MalformedValue
from messaging_sdk.models.out_message import REQUIRED_FIELDS, LifecycleStage
from providers.cache import LRUCache

app = FastAPI(
    title="Mock Out-Message Provider",
    description="Scheduled SMS delivery API with delivery reports",
)

# Configuration
OUT_MESSAGE_PROVIDER_API_KEY = os.getenv("OUT_MESSAGE_PROVIDER_API_KEY")
if not OUT_MESSAGE_PROVIDER_API_KEY:
    raise ValueError("OUT_MESSAGE_PROVIDER_API_KEY is not set")
CACHE_SIZE = int(os.getenv("CACHE_SIZE", "1000"))

# Out-messages by transaction id, each stored with its lifecycle stage
messages = LRUCache(max_size=CACHE_SIZE)
message_counter = 0


def require_api_key(authorization: Optional[str] = Header(default=None)) -> None:
    if authorization != f"Bearer {OUT_MESSAGE_PROVIDER_API_KEY}":
        raise HTTPException(status_code=401, detail="Invalid API key")


router = APIRouter(prefix="/api", dependencies=[Depends(require_api_key)])


def generate_transaction_id() -> str:
    """Generate a server-side transaction id"""
    global message_counter
    message_counter += 1
    return "TX" + str(message_counter).zfill(30)


def now() -> datetime:
    return datetime.now(timezone.utc)


def is_deliverable(msisdn: str) -> bool:
    """Anything shaped like an international number is deliverable"""
    return msisdn.startswith("+") and msisdn[1:].isdigit() and len(msisdn) >= 8


def validate_record(record: Dict[str, Any]) -> Optional[datetime]:
    """Check required fields and return the parsed send time, if any"""
    missing = [field for field in REQUIRED_FIELDS if not record.get(field)]
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Missing fields: {', '.join(missing)}"
        )

    send_time = record.get("sendTime")
    if send_time is None:
        return None
    try:
        return parse_datetime(send_time)
    except MalformedValue as e:
        raise HTTPException(status_code=400, detail=str(e))


def schedule(record: Dict[str, Any], send_time: Optional[datetime]) -> Dict[str, Any]:
    """Build a stored entry; messages without a future send time go out at once"""
    if send_time is not None and send_time > now():
        record.update(statusCode="Queued", delivered=False)
        stage = LifecycleStage.PENDING
    else:
        record.update(statusCode="Ok", delivered=True, billed=True)
        stage = LifecycleStage.DELIVERED
    record["lastModified"] = format_datetime(now())
    return {"record": record, "stage": stage}


def current_entry(transaction_id: str) -> Dict[str, Any]:
    """Look up a message, dispatching it if its send time has passed"""
    if transaction_id not in messages:
        raise HTTPException(status_code=404, detail="Out-message not found")

    entry = messages[transaction_id]
    record = entry["record"]
    if entry["stage"] is LifecycleStage.PENDING:
        send_time = parse_datetime(record["sendTime"])
        if send_time <= now():
            entry = schedule(record, None)
            messages[transaction_id] = entry
    return entry


def require_pending(entry: Dict[str, Any]) -> None:
    if entry["stage"] is not LifecycleStage.PENDING:
        raise HTTPException(
            status_code=412,
            detail=f"Out-message is {entry['stage'].value}, not pending",
        )


@router.post("/prepare-msisdns")
async def prepare_msisdns(msisdns: List[str] = Body(...)) -> List[Dict[str, Any]]:
    """Report deliverability per msisdn"""
    return [
        {
            "msisdn": msisdn,
            "deliverable": is_deliverable(msisdn),
            "capabilities": {"sms": is_deliverable(msisdn)},
        }
        for msisdn in msisdns
    ]


@router.post("/out-messages", status_code=201)
async def create_out_message(
    out_message: Dict[str, Any] = Body(...),
) -> Response:
    """Create one out-message; the id is returned in the Location header"""
    send_time = validate_record(out_message)
    transaction_id = out_message.get("transactionId") or generate_transaction_id()
    if transaction_id in messages:
        raise HTTPException(status_code=409, detail="Duplicate transactionId")

    record = {**out_message, "transactionId": transaction_id}
    record["created"] = format_datetime(now())
    messages[transaction_id] = schedule(record, send_time)

    return Response(
        status_code=201,
        headers={"Location": f"/api/out-messages/{transaction_id}"},
    )


@router.post("/out-messages/batch", status_code=201)
async def create_out_message_batch(
    out_messages: List[Dict[str, Any]] = Body(...),
) -> Response:
    """Create several out-messages; nothing is stored unless all are valid"""
    send_times = [validate_record(out_message) for out_message in out_messages]

    records = []
    seen = set()
    for out_message in out_messages:
        transaction_id = out_message.get("transactionId") or generate_transaction_id()
        if transaction_id in messages or transaction_id in seen:
            raise HTTPException(status_code=409, detail="Duplicate transactionId")
        seen.add(transaction_id)
        records.append({**out_message, "transactionId": transaction_id})

    for record, send_time in zip(records, send_times):
        record["created"] = format_datetime(now())
        messages[record["transactionId"]] = schedule(record, send_time)

    return Response(status_code=201)


@router.get("/out-messages/{transaction_id}")
async def get_out_message(transaction_id: str) -> Dict[str, Any]:
    """Get an out-message"""
    record: Dict[str, Any] = current_entry(transaction_id)["record"]
    return record


@router.put("/out-messages/{transaction_id}", status_code=204)
async def update_out_message(
    transaction_id: str, out_message: Dict[str, Any] = Body(...)
) -> Response:
    """Replace a pending out-message"""
    entry = current_entry(transaction_id)
    require_pending(entry)

    if out_message.get("transactionId", transaction_id) != transaction_id:
        raise HTTPException(status_code=400, detail="transactionId mismatch")
    send_time = validate_record(out_message)

    record = {
        **out_message,
        "transactionId": transaction_id,
        "created": entry["record"]["created"],
    }
    messages[transaction_id] = schedule(record, send_time)
    return Response(status_code=204)


@router.delete("/out-messages/{transaction_id}", status_code=204)
async def delete_out_message(transaction_id: str) -> Response:
    """Cancel a pending out-message"""
    require_pending(current_entry(transaction_id))
    del messages[transaction_id]
    return Response(status_code=204)


@router.get("/out-messages")
async def list_out_messages() -> Dict[str, List[Dict[str, Any]]]:
    """List all out-messages (for debugging)"""
    return {"outMessages": [entry["record"] for entry in messages.values()]}


app.include_router(router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint"""
    return {"status": "healthy", "service": "out_message_provider"}


if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")  # nosec B104
    uvicorn.run(app, host=host, port=port)
