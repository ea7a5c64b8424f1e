"""Reconditioning appointments, technicians and the service catalog."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from dealer_mcp.constants import (
    DEFAULT_CHECKLIST,
    RECON_PRIORITIES,
    RECON_STATUSES,
    RECON_TRANSITIONS,
    SERVICE_CHECKLISTS,
    SERVICE_TYPES,
    SERVICE_TYPES_BY_NAME,
    TECHNICIAN_STATUSES,
    ServiceType,
)
from dealer_mcp.errors import (
    DomainConflictError,
    InvalidArgumentError,
    ValidationError,
    coerce_id,
)
from dealer_mcp.services.base import (
    EntityService,
    check_choice,
    isoformat,
    parse_datetime,
    utc_now,
)

logger = logging.getLogger(__name__)


def get_service_types() -> list[dict[str, Any]]:
    return [s.to_dict() for s in SERVICE_TYPES]


def lookup_service_type(name: str) -> ServiceType:
    service = SERVICE_TYPES_BY_NAME.get(name)
    if service is None:
        raise ValidationError(
            f"Unknown service type '{name}'. Expected one of: "
            f"{', '.join(SERVICE_TYPES_BY_NAME)}.",
            details={"service_type": name},
        )
    return service


def build_checklist(service_type: str) -> list[dict[str, Any]]:
    items = SERVICE_CHECKLISTS.get(service_type, DEFAULT_CHECKLIST)
    return [{"item": item, "completed": False} for item in items]


class TechnicianService(EntityService):
    collection = "technicians"
    entity_name = "Technician"
    fields = frozenset({
        "name", "email", "phone", "specialties", "status", "hourly_rate", "branch_id",
    })
    required = ("name",)

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        record.setdefault("status", "Available")
        record.setdefault("specialties", [])
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), TECHNICIAN_STATUSES, label="technician status")

    def get_available(self) -> list[dict[str, Any]]:
        return self.find(lambda t: t.get("status") == "Available")

    def update_status(self, technician_id: Any, status: str) -> dict[str, Any]:
        check_choice(status, TECHNICIAN_STATUSES, label="technician status")
        technician = self.get_by_id(technician_id)
        technician["status"] = status
        return self._save(technician)


class ReconditioningService(EntityService):
    """Appointment CRUD is permissive about status; ``transition_status`` is not."""

    collection = "reconditioning"
    entity_name = "Reconditioning appointment"
    fields = frozenset({
        "vehicle_id", "technician_id", "service_type", "estimated_hours",
        "start_date", "end_date", "status", "priority", "checklist", "notes",
        "created_date", "updated_date",
    })
    required = ("vehicle_id", "service_type")

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        now = isoformat(utc_now())
        record.setdefault("status", "Scheduled")
        record.setdefault("priority", "Medium")
        record.setdefault("notes", "")
        if record.get("service_type") and "checklist" not in record:
            record["checklist"] = build_checklist(record["service_type"])
        record["created_date"] = now
        record["updated_date"] = now
        return record

    def _touch(self, record: dict[str, Any]) -> dict[str, Any]:
        record["updated_date"] = isoformat(utc_now())
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), RECON_STATUSES, label="reconditioning status")
        check_choice(record.get("priority"), RECON_PRIORITIES, label="priority")

    def get_by_vehicle_id(self, vehicle_id: Any) -> list[dict[str, Any]]:
        vid = coerce_id(vehicle_id, label="vehicle id")
        return self.find(lambda r: r.get("vehicle_id") == vid)

    def get_by_technician_id(self, technician_id: Any) -> list[dict[str, Any]]:
        tid = coerce_id(technician_id, label="technician id")
        return self.find(lambda r: r.get("technician_id") == tid)

    def schedule_appointment(
        self,
        vehicle_id: Any,
        service_type: str,
        start_date: Any,
        technician_id: Any,
        *,
        priority: str = "Medium",
        notes: str = "",
    ) -> dict[str, Any]:
        """Book a catalog service; the end time follows from its estimated hours."""
        service = lookup_service_type(service_type)
        technician = TechnicianService(self._database, self.config).get_by_id(technician_id)
        start = parse_datetime(start_date, label="start_date")
        check_choice(priority, RECON_PRIORITIES, label="priority")

        appointment = self.create({
            "vehicle_id": coerce_id(vehicle_id, label="vehicle id"),
            "technician_id": technician["id"],
            "service_type": service.name,
            "estimated_hours": service.estimated_hours,
            "start_date": isoformat(start),
            "end_date": isoformat(start + timedelta(hours=service.estimated_hours)),
            "status": "Scheduled",
            "priority": priority,
            "checklist": build_checklist(service.name),
            "notes": notes,
        })
        logger.info(
            "Scheduled %s for vehicle %s with technician %s",
            service.name, appointment["vehicle_id"], technician["id"],
        )
        return appointment

    def transition_status(self, appointment_id: Any, status: str) -> dict[str, Any]:
        check_choice(status, RECON_STATUSES, label="reconditioning status")
        appointment = self.get_by_id(appointment_id)
        current = appointment["status"]
        if status not in RECON_TRANSITIONS.get(current, frozenset()):
            raise DomainConflictError(
                f"Cannot move appointment {appointment['id']} from {current} to {status}",
                details={"from": current, "to": status},
            )
        appointment["status"] = status
        return self._save(self._touch(appointment))

    def update_checklist_item(
        self,
        appointment_id: Any,
        index: Any,
        completed: bool,
    ) -> dict[str, Any]:
        appointment = self.get_by_id(appointment_id)
        checklist = list(appointment.get("checklist") or [])
        idx = coerce_id(index, label="checklist index")
        if not 0 <= idx < len(checklist):
            raise InvalidArgumentError(
                f"Checklist index {idx} out of range for appointment {appointment['id']}",
                details={"index": idx, "size": len(checklist)},
            )
        checklist[idx] = {**checklist[idx], "completed": bool(completed)}
        appointment["checklist"] = checklist
        return self._save(self._touch(appointment))
