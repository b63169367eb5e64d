from pydantic import BaseModel, ConfigDict, Field


class IndexStats(BaseModel):
    """Index statistics exactly as reported by the vector store.

    Attributes:
        namespaces:         Per-namespace record counts (e.g. {"": {"vectorCount": 12}}).
        dimension:          Configured vector dimension of the index.
        index_fullness:     Fill ratio between 0 and 1.
        total_vector_count: Number of stored records across all namespaces.
    """

    # fields the store adds later (e.g. "metric", "vectorType") are passed through
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    namespaces: dict = {}
    dimension: int | None = None
    index_fullness: float | None = Field(default=None, alias="indexFullness")
    total_vector_count: int | None = Field(default=None, alias="totalVectorCount")
