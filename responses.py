"""
Response envelope shared by every JSON endpoint:
{success, data, message?} on success, {success: false, error, message?, details?} on failure.
"""

from http import HTTPStatus

from flask import jsonify


def success(data=None, message=None, status=HTTPStatus.OK, **extra):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return jsonify(body), status


def created(data=None, message=None):
    return success(data, message, status=HTTPStatus.CREATED)


def error_body(error, message=None, details=None):
    body = {"success": False, "error": error}
    if message:
        body["message"] = message
    if details is not None:
        body["details"] = details
    return body


def error(error_text, status=HTTPStatus.BAD_REQUEST, message=None, details=None):
    return jsonify(error_body(error_text, message, details)), status
