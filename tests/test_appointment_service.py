"""Tests for the appointment service."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentUpdate,
    DoctorSummary,
    PatientSummary,
)
from clinic_scheduler.services.appointment_service import (
    INVALID_SLOT_MESSAGE,
    NOT_FOUND_MESSAGE,
    UNKNOWN_REFERENCE_MESSAGE,
    OVERLAP_MESSAGE,
    AppointmentService,
    to_calendar_event,
)
from clinic_scheduler.services.results import ErrorKind, Failure, Success


def at(hour: int, minute: int = 0, day: int = 10) -> datetime:
    """Point in time on January 2024, UTC."""
    return datetime(2024, 1, day, hour, minute, tzinfo=UTC)


def booking(
    patient: PatientSummary,
    doctor: DoctorSummary,
    start: datetime,
    end: datetime,
    **extra: object,
) -> AppointmentCreate:
    """Build a creation request."""
    return AppointmentCreate(
        patient_id=patient.id,
        doctor_id=doctor.id,
        start_time=start,
        end_time=end,
        **extra,
    )


@pytest.mark.asyncio
async def test_create_appointment(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test booking a free slot."""
    result = await service.create(
        booking(patient, doctor, at(10), at(11), reason="Checkup"), clinic_id, uuid4()
    )

    assert isinstance(result, Success)
    appointment = result.value
    assert appointment.status == AppointmentStatus.SCHEDULED
    assert appointment.clinic_id == clinic_id
    assert appointment.patient.first_name == "Juan"
    assert appointment.id in repository.appointments
    assert repository.commits == 1


@pytest.mark.asyncio
async def test_create_locks_practitioner_before_checking(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that the calendar is locked before it is read and written."""
    await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, uuid4())

    assert repository.calls == [
        "references_exist",
        "lock_practitioner",
        "find_conflicting",
        "create",
    ]


@pytest.mark.asyncio
async def test_create_rejects_invalid_slot(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that a slot ending before it starts is rejected without touching storage."""
    result = await service.create(booking(patient, doctor, at(11), at(10)), clinic_id, uuid4())

    assert result == Failure(ErrorKind.VALIDATION, INVALID_SLOT_MESSAGE)
    assert repository.calls == []


@pytest.mark.asyncio
async def test_create_rejects_zero_length_slot(
    service: AppointmentService,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an empty slot is rejected."""
    result = await service.create(booking(patient, doctor, at(10), at(10)), clinic_id, uuid4())

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.VALIDATION


@pytest.mark.asyncio
async def test_create_conflict_is_not_persisted(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an overlapping booking is rejected and nothing is stored."""
    repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.create(booking(patient, doctor, at(10, 30), at(11, 30)), clinic_id, uuid4())

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.CONFLICT
    assert "Juan Pérez" in result.message
    assert "10/01/2024 10:00" in result.message
    assert len(repository.appointments) == 1
    assert "create" not in repository.calls


@pytest.mark.asyncio
async def test_cancelled_appointment_does_not_block(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that cancelled and no-show appointments free the slot."""
    repository.add_appointment(
        clinic_id, patient, doctor, at(10), at(11), status=AppointmentStatus.CANCELLED
    )
    repository.add_appointment(
        clinic_id, patient, doctor, at(10), at(11), status=AppointmentStatus.NO_SHOW
    )

    result = await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, uuid4())

    assert isinstance(result, Success)


@pytest.mark.asyncio
async def test_other_practitioner_and_other_clinic_do_not_block(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that conflicts are scoped to the practitioner within the clinic."""
    other_doctor = repository.add_doctor("Marco Ruiz")
    repository.add_appointment(clinic_id, patient, other_doctor, at(10), at(11))
    repository.add_appointment(uuid4(), patient, doctor, at(10), at(11))

    result = await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, uuid4())

    assert isinstance(result, Success)


@pytest.mark.asyncio
async def test_create_rejects_patient_of_other_clinic(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    doctor: DoctorSummary,
) -> None:
    """Test that a patient registered in another clinic cannot be booked."""
    outsider = repository.add_patient("Secret", "Outsider", phone="555", clinic_id=uuid4())

    result = await service.create(booking(outsider, doctor, at(10), at(11)), clinic_id, uuid4())

    assert result == Failure(ErrorKind.VALIDATION, UNKNOWN_REFERENCE_MESSAGE)
    assert repository.appointments == {}
    assert repository.calls == ["references_exist"]


@pytest.mark.asyncio
async def test_create_rejects_practitioner_of_other_clinic(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
) -> None:
    """Test that a practitioner without membership in the clinic cannot be booked."""
    outsider = repository.add_doctor("Pedro Ajeno", clinic_id=uuid4())

    result = await service.create(booking(patient, outsider, at(10), at(11)), clinic_id, uuid4())

    assert result == Failure(ErrorKind.VALIDATION, UNKNOWN_REFERENCE_MESSAGE)
    assert repository.appointments == {}


@pytest.mark.asyncio
async def test_update_rejects_patient_of_other_clinic(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an appointment cannot be pointed at another clinic's patient."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))
    outsider = repository.add_patient("Secret", "Outsider", clinic_id=uuid4())

    result = await service.update(
        appointment.id, clinic_id, AppointmentUpdate(patient_id=outsider.id)
    )

    assert result == Failure(ErrorKind.VALIDATION, UNKNOWN_REFERENCE_MESSAGE)
    assert repository.appointments[appointment.id].patient_id == patient.id
    assert "update" not in repository.calls


@pytest.mark.asyncio
async def test_update_rejects_practitioner_of_other_clinic(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an appointment cannot be moved to another clinic's practitioner."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))
    outsider = repository.add_doctor("Pedro Ajeno", clinic_id=uuid4())

    result = await service.update(
        appointment.id, clinic_id, AppointmentUpdate(doctor_id=outsider.id)
    )

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.VALIDATION
    assert repository.appointments[appointment.id].doctor_id == doctor.id
    assert repository.conflict_checks == []


@pytest.mark.asyncio
async def test_storage_overlap_is_reported_as_conflict(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an overlap caught by storage after a stale read is a conflict."""
    repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))
    repository.find_conflicting = AsyncMock(return_value=None)

    result = await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, uuid4())

    assert result == Failure(ErrorKind.CONFLICT, OVERLAP_MESSAGE)
    assert len(repository.appointments) == 1
    assert repository.rollbacks == 1


@pytest.mark.asyncio
async def test_booking_scenario(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test a day of bookings: overlap rejected, back-to-back accepted."""
    user_id = uuid4()

    first = await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, user_id)
    overlapping = await service.create(
        booking(patient, doctor, at(10, 30), at(11, 30)), clinic_id, user_id
    )
    back_to_back = await service.create(
        booking(patient, doctor, at(11), at(12)), clinic_id, user_id
    )

    assert isinstance(first, Success)
    assert isinstance(overlapping, Failure)
    assert overlapping.kind == ErrorKind.CONFLICT
    assert "10:00" in overlapping.message
    assert isinstance(back_to_back, Success)
    assert len(repository.appointments) == 2


@pytest.mark.asyncio
async def test_update_notes_skips_conflict_check(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that changing only notes never queries for conflicts."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(appointment.id, clinic_id, AppointmentUpdate(notes="Bring results"))

    assert isinstance(result, Success)
    assert result.value.notes == "Bring results"
    assert repository.conflict_checks == []


@pytest.mark.asyncio
async def test_reschedule_ignores_itself(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an appointment can be moved within its own slot."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(
        appointment.id, clinic_id, AppointmentUpdate(start_time=at(10, 30), end_time=at(11, 30))
    )

    assert isinstance(result, Success)
    assert result.value.start_time == at(10, 30)
    assert repository.conflict_checks[0].exclude_appointment_id == appointment.id


@pytest.mark.asyncio
async def test_reschedule_into_occupied_slot(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that moving onto another booking is rejected and nothing changes."""
    other_patient = repository.add_patient("Ana", "López")
    repository.add_appointment(clinic_id, other_patient, doctor, at(12), at(13))
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(
        appointment.id, clinic_id, AppointmentUpdate(start_time=at(12, 30), end_time=at(13, 30))
    )

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.CONFLICT
    assert "Ana López" in result.message
    assert repository.appointments[appointment.id].start_time == at(10)


@pytest.mark.asyncio
async def test_update_validates_effective_slot(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that a new end before the stored start is rejected."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(appointment.id, clinic_id, AppointmentUpdate(end_time=at(9)))

    assert result == Failure(ErrorKind.VALIDATION, INVALID_SLOT_MESSAGE)


@pytest.mark.asyncio
async def test_update_switching_practitioner_checks_new_calendar(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that reassigning a practitioner checks that practitioner's bookings."""
    busy_doctor = repository.add_doctor("Marco Ruiz")
    repository.add_appointment(clinic_id, patient, busy_doctor, at(10), at(11))
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(
        appointment.id, clinic_id, AppointmentUpdate(doctor_id=busy_doctor.id)
    )

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.CONFLICT
    assert repository.conflict_checks[0].doctor_id == busy_doctor.id


@pytest.mark.asyncio
async def test_update_missing_appointment(service: AppointmentService, clinic_id: UUID) -> None:
    """Test updating an unknown appointment."""
    result = await service.update(uuid4(), clinic_id, AppointmentUpdate(notes="x"))

    assert result == Failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)


@pytest.mark.asyncio
async def test_update_other_clinic_is_not_found(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that appointments of other clinics are invisible."""
    appointment = repository.add_appointment(uuid4(), patient, doctor, at(10), at(11))

    result = await service.update(appointment.id, clinic_id, AppointmentUpdate(notes="x"))

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_empty_update_returns_current(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that an update without fields leaves the appointment untouched."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update(appointment.id, clinic_id, AppointmentUpdate())

    assert result == Success(appointment)
    assert "update" not in repository.calls


@pytest.mark.asyncio
async def test_cancel_frees_slot(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that a cancelled appointment is kept and its slot can be rebooked."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    cancelled = await service.cancel(appointment.id, clinic_id)
    rebooked = await service.create(booking(patient, doctor, at(10), at(11)), clinic_id, uuid4())

    assert cancelled == Success(None)
    assert repository.appointments[appointment.id].status == AppointmentStatus.CANCELLED
    assert isinstance(rebooked, Success)


@pytest.mark.asyncio
async def test_reactivating_booked_slot_is_conflict(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that restoring a cancelled appointment over a new booking is rejected."""
    cancelled = repository.add_appointment(
        clinic_id, patient, doctor, at(10), at(11), status=AppointmentStatus.CANCELLED
    )
    repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    result = await service.update_status(cancelled.id, clinic_id, AppointmentStatus.SCHEDULED)

    assert result == Failure(ErrorKind.CONFLICT, OVERLAP_MESSAGE)
    assert repository.appointments[cancelled.id].status == AppointmentStatus.CANCELLED


@pytest.mark.asyncio
async def test_update_status_missing_appointment(
    service: AppointmentService, clinic_id: UUID
) -> None:
    """Test changing the status of an unknown appointment."""
    result = await service.update_status(uuid4(), clinic_id, AppointmentStatus.CONFIRMED)

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_get_many_paginates(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test page metadata and ordering of the appointment list."""
    for hour in (14, 9, 11):
        repository.add_appointment(clinic_id, patient, doctor, at(hour), at(hour, 30))

    page = await service.get_many(AppointmentFilters(clinic_id=clinic_id), page=1, limit=2)

    assert page.total == 3
    assert page.pages == 2
    assert [a.start_time.hour for a in page.items] == [9, 11]


@pytest.mark.asyncio
async def test_get_many_empty(service: AppointmentService, clinic_id: UUID) -> None:
    """Test an empty appointment list."""
    page = await service.get_many(AppointmentFilters(clinic_id=clinic_id))

    assert page.items == []
    assert page.total == 0
    assert page.pages == 0


@pytest.mark.asyncio
async def test_get_calendar_events(
    service: AppointmentService,
    repository,
    clinic_id: UUID,
    doctor: DoctorSummary,
) -> None:
    """Test the calendar projection of appointments starting in range."""
    patient = repository.add_patient("María", "Hernández", middle_name="Luisa")
    appointment = repository.add_appointment(
        clinic_id,
        patient,
        doctor,
        at(10),
        at(11),
        status=AppointmentStatus.CONFIRMED,
        reason="Follow-up",
    )
    repository.add_appointment(clinic_id, patient, doctor, at(10, day=20), at(11, day=20))

    events = await service.get_calendar_events(clinic_id, at(0), at(23, 59))

    assert len(events) == 1
    event = events[0]
    assert event.id == str(appointment.id)
    assert event.title == "María Luisa Hernández - Dr. Laura Gómez"
    assert event.background_color == event.border_color == "#10b981"
    assert event.resource.reason == "Follow-up"
    assert event.resource.status == AppointmentStatus.CONFIRMED


def test_to_calendar_event_times(
    repository,
    clinic_id: UUID,
    patient: PatientSummary,
    doctor: DoctorSummary,
) -> None:
    """Test that event bounds are the appointment's ISO timestamps."""
    appointment = repository.add_appointment(clinic_id, patient, doctor, at(10), at(11))

    event = to_calendar_event(appointment)

    assert event.start == "2024-01-10T10:00:00+00:00"
    assert event.end == "2024-01-10T11:00:00+00:00"
