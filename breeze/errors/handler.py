# coding: utf8
import traceback

from werkzeug.exceptions import HTTPException

from breeze.errors.exceptions import BaseError
from breeze.lib.logger import logger
from breeze.lib.response import Response


def api_error_handler(error):
    if isinstance(error, BaseError):
        logger.warning(f"{error.__class__.__name__}: {error.message}")
        return Response(
            code=error.code, message=error.message, data=error.payload, status=error.status
        ).to_dict()

    if isinstance(error, HTTPException):
        return Response(
            code=error.code, message=error.description, status=error.code
        ).to_dict()

    logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
    return Response(code=500, message="Internal Server Error", status=500).to_dict()
