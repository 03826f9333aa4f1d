from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, computed_field

# ======================================================
# Configuration Commune Pydantic
# ======================================================

class OrmBaseModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True
    )

# --- Pagination ---
T = TypeVar('T')

class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int = 1
    limit: int = 20

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
