"""Object-upload event endpoint.

Each request carries one storage notification and runs one pipeline
invocation. Input errors answer 400 so the delivery service stops
redelivering; every other failure answers 500 and redelivery is left to it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from line_analyzer.api.schemas.models import AckSchema, ErrorSchema, StorageEventSchema
from line_analyzer.api.services.state import get_pipeline
from line_analyzer.core.errors import InputError, PipelineError
from line_analyzer.core.pipeline import LinePipeline

router = APIRouter()


@router.post(
    "/events/storage",
    response_model=AckSchema,
    responses={400: {"model": ErrorSchema}, 500: {"model": ErrorSchema}},
)
def storage_event(
    event: StorageEventSchema, pipeline: LinePipeline = Depends(get_pipeline)
) -> AckSchema | JSONResponse:
    """Analyze the uploaded image named by the event."""

    try:
        ack = pipeline.run(event.to_reference())
    except PipelineError as exc:
        status = 400 if isinstance(exc.cause, InputError) else 500
        body = ErrorSchema(stage=exc.stage, error=str(exc.cause), retryable=exc.retryable)
        return JSONResponse(status_code=status, content=body.model_dump())
    return AckSchema.from_ack(ack)
