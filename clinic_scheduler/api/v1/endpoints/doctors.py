"""Doctor endpoints."""

from fastapi import APIRouter, status

from clinic_scheduler.dependencies import CurrentClinic, DatabaseSession
from clinic_scheduler.schemas.doctors import DoctorListItem
from clinic_scheduler.services.doctor_service import DoctorService

router = APIRouter()


@router.get(
    "/",
    response_model=list[DoctorListItem],
    status_code=status.HTTP_200_OK,
    summary="List the clinic's practitioners",
)
async def list_doctors(member: CurrentClinic, db: DatabaseSession) -> list[DoctorListItem]:
    """List practitioners that appointments can be booked with."""
    return await DoctorService.list_doctors(db, member.clinic_id)
