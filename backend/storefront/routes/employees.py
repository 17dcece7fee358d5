# Overview: Flask API routes for employee management; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..services import employee_service
from ..services.employee_service import EmployeeError
from ..validation import ConflictError, ValidationError

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def list_employees_route():
    return {"employees": [e.to_dict() for e in employee_service.list_employees()]}, 200


@employees_bp.post("")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def add_employee_route():
    try:
        employee = employee_service.add_employee(request.get_json(silent=True) or {})
    except ValidationError as e:
        return e.to_dict(), 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to add employee")
        return {"error": "Failed to add employee"}, 500
    return employee.to_dict(), 201


@employees_bp.put("/<int:employee_id>")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def edit_employee_route(employee_id: int):
    try:
        employee = employee_service.edit_employee(employee_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return e.to_dict(), 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except EmployeeError as e:
        return {"error": str(e)}, e.status_code
    return employee.to_dict(), 200


@employees_bp.delete("/<int:employee_id>")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def delete_employee_route(employee_id: int):
    try:
        employee_service.delete_employee(employee_id)
    except EmployeeError as e:
        return {"error": str(e)}, e.status_code
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"message": "Employee deleted"}, 200
