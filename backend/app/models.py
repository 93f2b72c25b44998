from pydantic import BaseModel


class PrintAreaModel(BaseModel):
    top: float
    left: float
    width: float
    height: float


class GarmentModel(BaseModel):
    name: str
    image: str
    imageBack: str
    printArea: PrintAreaModel
    printAreaBack: PrintAreaModel
    colors: list[str] = []


class GarmentListResponse(BaseModel):
    success: bool = True
    data: dict[str, GarmentModel]


class MockupCreateResponse(BaseModel):
    filename: str
    mockup: bool
    result_path: str
    error: str | None = None
