from typing import Any, Iterable, Self

import pydantic

from domain.errors import RecommendationError


class MenuItem:
    def __init__(
        self,
        *,
        id: str,
        name: str,
        image: str = "",
        color: str = "bg-green-500",
        tags: Iterable[str] = (),
    ) -> None:
        self.id = id
        self.name = name
        self.image = image
        self.color = color
        self.tags = tuple(tags)

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, name={self.name})>"

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MenuItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            image=str(data.get("image", "")),
            color=str(data.get("color", "bg-green-500")),
            tags=[str(t) for t in data.get("tags", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "color": self.color,
            "tags": list(self.tags),
        }


class Recommendation(pydantic.BaseModel):
    """What the recommendation service answers with. Not trusted until the name is
    looked up in the catalog."""

    model_config = pydantic.ConfigDict(populate_by_name=True, frozen=True)

    menu_name: str = pydantic.Field(alias="menuName")
    reason: str

    @classmethod
    def from_json(cls, raw: str | bytes | None) -> Self:
        if not raw:
            raise RecommendationError("Empty recommendation.")
        try:
            return cls.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise RecommendationError(f"Malformed recommendation. {raw!r}") from e
