from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .Tag import Tag


@dataclass(frozen=True)
class TagSet:
    """
    Conjunto imutável de tags aplicado a todo recurso do cluster.

    Nunca é vazio: a construção falha com ValueError se não houver tags.
    """

    tags: Tuple[Tag, ...]

    def __post_init__(self) -> None:
        if not self.tags:
            raise ValueError("tag set must contain at least one key-value pair")

        seen = set()
        for t in self.tags:
            if t.key in seen:
                raise ValueError(f"duplicate tag key: {t.key!r}")
            seen.add(t.key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TagSet":
        tags = []
        for k, v in data.items():
            if v is None or isinstance(v, (dict, list)):
                raise ValueError(f"value of tag {k!r} must be a scalar, got {type(v).__name__}")
            tags.append(Tag(key=str(k), value=str(v)))
        return cls(tuple(tags))

    def to_dict(self) -> Dict[str, str]:
        return {t.key: t.value for t in self.tags}

    def to_aws(self) -> List[Dict[str, str]]:
        return [t.to_aws() for t in self.tags]

    def __len__(self) -> int:
        return len(self.tags)
