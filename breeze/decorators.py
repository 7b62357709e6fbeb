# coding: utf8
from functools import wraps

from flask import request
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from jsonschema import FormatChecker, validate
from jsonschema.exceptions import ValidationError

from breeze.errors.exceptions import BadRequest, Forbidden


def roles_required(*roles):
    """Require a JWT whose ``role`` claim is one of ``roles``."""

    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            verify_jwt_in_request()
            role = get_jwt().get("role")
            if role not in roles and role != "admin":
                raise Forbidden(message=f"This action requires role: {', '.join(roles)}")
            return fn(*args, **kwargs)

        return decorator

    return wrapper


def current_role():
    return get_jwt().get("role")


def parameters(**schema):
    def decorated(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            req_args = request.args.to_dict()
            if (
                request.method in ("POST", "PUT", "PATCH", "DELETE")
                and request.mimetype == "application/json"
            ):
                req_args.update(request.get_json(silent=True) or {})

            if (
                request.method in ("POST", "PUT", "PATCH", "DELETE")
                and request.mimetype == "multipart/form-data"
            ):
                req_args.update(request.form.to_dict())

            req_args = {
                k: v for k, v in req_args.items() if k in schema["properties"].keys()
            }

            if "required" in schema:
                for field in schema["required"]:
                    if field not in req_args or req_args[field] in (None, ""):
                        field_name = schema["properties"].get(field, {}).get("name", field)
                        raise BadRequest(message="{} is required".format(field_name))

            try:
                validate(
                    instance=req_args, schema=schema, format_checker=FormatChecker()
                )
            except ValidationError as exp:
                exp_info = list(exp.schema_path)
                error_type = (
                    "type",
                    "format",
                    "pattern",
                    "maxLength",
                    "minLength",
                    "minimum",
                    "maximum",
                    "enum",
                )

                if set(exp_info).intersection(set(error_type)) and len(exp_info) > 1:
                    field = exp_info[1]
                    field_config = schema["properties"].get(field, {})
                    valid_values = field_config.get("enum", [])

                    message = f"Field '{field}' is not valid."
                    if valid_values:
                        enum_values = ", ".join(str(value) for value in valid_values)
                        message += f" Valid values: {enum_values}."
                else:
                    message = "Request parameters are invalid."

                raise BadRequest(message=message)

            new_args = args + (req_args,)
            return func(*new_args, **kwargs)

        return wrapper

    return decorated
