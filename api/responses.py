"""
Uniform success envelopes: {status, message, data?} and the paginated variant.
"""
from __future__ import annotations

import math

from flask import jsonify
from marshmallow import Schema, ValidationError

from .errors import ValidationFailed, flatten_messages


def send_success(data=None, message: str = "Success", status_code: int = 200):
    payload = {"status": "success", "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status_code


def send_created(data, message: str = "Created successfully"):
    return send_success(data, message, 201)


def send_no_content():
    return ("", 204)


def send_paginated(data: list, page: int, limit: int, total: int):
    total_pages = math.ceil(total / limit) if limit else 0
    return jsonify(
        {
            "status": "success",
            "data": data,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": total_pages,
                "hasNextPage": page < total_pages,
                "hasPrevPage": page > 1,
            },
        }
    ), 200


def load_or_fail(schema: Schema, payload, location: str = "body") -> dict:
    """Run schema.load and turn marshmallow errors into a 400 with field details."""
    try:
        return schema.load(payload if payload is not None else {})
    except ValidationError as err:
        raise ValidationFailed(flatten_messages(err.messages, location))
