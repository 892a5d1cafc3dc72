from fastapi import HTTPException, Request, status

from hep_tracker.services.program_service import ClientProgramService


def get_program_service(request: Request) -> ClientProgramService:
    """Service instance created in the application lifespan."""
    service = getattr(request.app.state, "program_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting up")
    return service
