"""
Gateway control blueprint — the platform side of the router.

Endpoints:
    POST /_sw/install                      install (pre-cache manifest)
    POST /_sw/activate                     activate (cleanup + claim + notify)
    POST /_sw/message                      {type: SKIP_WAITING | CLEAR_CACHE, ...}
    GET  /_sw/status                       version, state, bucket names
    POST /_sw/clients                      register an open page → {id}
    GET  /_sw/clients/<id>/messages        drain queued messages
    DELETE /_sw/clients/<id>               page closed
    POST /_sw/push                         push payload → notification
    POST /_sw/push/subscribe               page reports its subscription (forwarded
                                           to the server when it renews one)
    POST /_sw/push/subscription-change     invalidate + ask pages to re-subscribe
    POST /_sw/notifications/click          {data, action} → focus / open
    POST /_sw/notifications/close          {data}
"""

import logging

from flask import Blueprint, jsonify, request

from offline_router import get_router
from offline_router.core.exceptions import SubscriptionError, ValidationError
from offline_router.utils.errors import E, api_error

logger = logging.getLogger(__name__)

sw_bp = Blueprint("sw_bp", __name__, url_prefix="/_sw")


def _json_object(required: bool = True) -> dict:
    """Request body as a dict; ValidationError when it is not an object."""
    data = request.get_json(silent=True)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@sw_bp.errorhandler(ValidationError)
def _validation_error(e):
    return api_error(E.VALIDATION_INVALID, str(e), details=e.details or None)


# ── Lifecycle ──────────────────────────────────────────────────────────────


@sw_bp.route("/install", methods=["POST"])
def install():
    result = get_router().handle_install()
    return jsonify(result.to_dict()), 200


@sw_bp.route("/activate", methods=["POST"])
def activate():
    result = get_router().handle_activate()
    return jsonify(result.to_dict()), 200


@sw_bp.route("/status", methods=["GET"])
def status():
    return jsonify(get_router().status()), 200


# ── Message channel ────────────────────────────────────────────────────────


@sw_bp.route("/message", methods=["POST"])
def message():
    """Page → gateway command. Unknown types are accepted and ignored."""
    data = _json_object()
    reply = get_router().handle_message(data)
    if reply is None:
        return jsonify({"type": data.get("type"), "ignored": True}), 202
    return jsonify(reply), 200


# ── Clients ────────────────────────────────────────────────────────────────


@sw_bp.route("/clients", methods=["POST"])
def register_client():
    data = _json_object(required=False)
    url = data.get("url") or "/"
    client = get_router().clients.register(url, client_id=data.get("id"))
    return jsonify(client.to_dict()), 201


@sw_bp.route("/clients/<client_id>/messages", methods=["GET"])
def client_messages(client_id):
    client = get_router().clients.get(client_id)
    if client is None:
        return api_error(E.NOT_FOUND, "Client not found")
    return jsonify({"id": client.id, "messages": client.drain_messages()}), 200


@sw_bp.route("/clients/<client_id>", methods=["DELETE"])
def unregister_client(client_id):
    if not get_router().clients.unregister(client_id):
        return api_error(E.NOT_FOUND, "Client not found")
    return "", 204


# ── Push ───────────────────────────────────────────────────────────────────


@sw_bp.route("/push", methods=["POST"])
def push():
    notification = get_router().handle_push(request.get_json(silent=True))
    if notification is None:
        return jsonify({"shown": False}), 200
    return jsonify({"shown": True, **notification}), 200


@sw_bp.route("/push/subscribe", methods=["POST"])
def push_subscribe():
    data = _json_object()
    try:
        result = get_router().handle_push_subscribe(data)
    except SubscriptionError as exc:
        return api_error(E.VALIDATION_INVALID, str(exc))
    return jsonify(result), 201


@sw_bp.route("/push/subscription-change", methods=["POST"])
def push_subscription_change():
    return jsonify(get_router().handle_push_subscription_change()), 202


@sw_bp.route("/notifications/click", methods=["POST"])
def notification_click():
    data = _json_object(required=False)
    result = get_router().handle_notification_click(data.get("data"), data.get("action"))
    return jsonify(result), 200


@sw_bp.route("/notifications/close", methods=["POST"])
def notification_close():
    data = _json_object(required=False)
    get_router().handle_notification_close(data.get("data"))
    return "", 204
