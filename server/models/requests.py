from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    top_k: int | None = Field(default=None, alias="topK")
    similarity_threshold: float | None = Field(default=None, alias="similarityThreshold")
