from collections import OrderedDict
from collections.abc import KeysView, ValuesView
from typing import Any


class LRUCache:
    def __init__(self, *, max_size: int):
        self.cache: OrderedDict[str, Any] = OrderedDict()
        self.max_size = max_size

    def __setitem__(self, key: str, value: Any) -> None:
        if key in self.cache:
            # Replace and mark as most recently used
            self.cache.move_to_end(key)
        self.cache[key] = value
        if len(self.cache) > self.max_size:
            self.cache.popitem(last=False)  # Evict oldest

    def __getitem__(self, key: str) -> Any:
        if key not in self.cache:
            raise KeyError(key)
        self.cache.move_to_end(key)
        return self.cache[key]

    def __delitem__(self, key: str) -> None:
        del self.cache[key]

    def __contains__(self, key: str) -> bool:
        return key in self.cache

    def __len__(self) -> int:
        return len(self.cache)

    def keys(self) -> KeysView[str]:
        return self.cache.keys()

    def values(self) -> ValuesView[Any]:
        return self.cache.values()

    def clear(self) -> None:
        self.cache.clear()
