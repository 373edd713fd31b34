"""API endpoints хранилища ключ-значение (контекст ассистента)."""

from fastapi import APIRouter, Depends, status

from ..services import MemoryService
from .dependencies import get_memory_service
from .schemas import ErrorResponse, MemoryResponse, MemorySet

router = APIRouter(prefix="/memory", tags=["memory"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Ключ не найден"}}


@router.get("", response_model=dict[str, str], summary="Все значения")
async def get_all(service: MemoryService = Depends(get_memory_service)) -> dict[str, str]:
    """
    Пример ответа:
    ```json
    {"user_name": "Dmitry", "work_hours": "10:00-19:00"}
    ```
    """
    return await service.get_all()


@router.get("/{key}", response_model=MemoryResponse, responses=NOT_FOUND_RESPONSE)
async def get_value(key: str, service: MemoryService = Depends(get_memory_service)) -> MemoryResponse:
    entry = await service.get(key)
    return MemoryResponse.model_validate(entry)


@router.put("/{key}", response_model=MemoryResponse, summary="Записать значение")
async def set_value(
    key: str, data: MemorySet, service: MemoryService = Depends(get_memory_service)
) -> MemoryResponse:
    entry = await service.set(key, data.value)
    return MemoryResponse.model_validate(entry)


@router.delete(
    "/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить ключ",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_value(key: str, service: MemoryService = Depends(get_memory_service)) -> None:
    await service.delete(key)
