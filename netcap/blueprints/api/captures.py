"""Capture API endpoints for NETCAP.

Provides the REST API the dashboard uses to validate, start, stop and
monitor remote packet captures, and to manage the resulting files.
"""

import io
import logging

from flask import current_app, jsonify, request, send_file

from . import api_bp
from netcap.core.capture.size_estimator import DEFAULT_PACKETS_PER_SECOND
from netcap.models.capture import (
    CaptureConfig,
    CaptureDestination,
    CaptureDirection,
    CaptureError,
    CaptureLocation,
    CaptureProtocol,
    CaptureValidationError,
    RemoteRequestError,
    CAPTURE_INVALID_CONFIG,
    CAPTURE_NOT_FOUND,
    DEFAULT_CAPTURE_DURATION,
    DEFAULT_RADIO,
    MAX_CAPTURE_DURATION,
    MAX_TRUNCATION_BYTES,
    MIN_CAPTURE_DURATION,
    MIN_TRUNCATION_BYTES,
    SAFE_TRUNCATION_BYTES,
)

logger = logging.getLogger(__name__)

RADIO_OPTIONS = [
    {"value": "all", "label": "All Radios"},
    {"value": "radio0", "label": "Radio 0 (2.4 GHz)"},
    {"value": "radio1", "label": "Radio 1 (5 GHz)"},
    {"value": "radio2", "label": "Radio 2 (6 GHz)"},
]

PCAP_MIMETYPE = "application/vnd.tcpdump.pcap"


def get_capture_manager():
    """Return the application's PacketCaptureManager."""
    return current_app.extensions["capture_manager"]


def _error_status(error: CaptureError) -> int:
    """HTTP status for a capture error."""
    if isinstance(error, CaptureValidationError):
        return 400
    if error.code == CAPTURE_NOT_FOUND:
        return 404
    if isinstance(error, RemoteRequestError):
        return 502
    return 400


def _error_response(error: CaptureError):
    return jsonify({
        "success": False,
        "error": error.to_dict(),
    }), _error_status(error)


def _unexpected_error(error: Exception, action: str):
    logger.error(f"Unexpected error {action} (error={str(error)})")
    return jsonify({
        "success": False,
        "error": {
            "code": "CAPTURE_FAILED",
            "message": f"Unexpected error {action}: {str(error)}",
            "details": {},
        },
    }), 500


def _parse_config_body() -> CaptureConfig:
    data = request.get_json(silent=True)
    if data is None:
        raise CaptureValidationError(
            code=CAPTURE_INVALID_CONFIG,
            message="Invalid or missing JSON request body",
        )
    return CaptureConfig.from_dict(data)


@api_bp.route('/captures/config', methods=['GET'])
def get_capture_config():
    """Get capture configuration options.

    Returns default values and valid ranges for capture parameters.

    Returns:
        JSON with configuration options
    """
    return jsonify({
        "success": True,
        "config": {
            "location": {
                "default": CaptureLocation.WIRELESS.value,
                "options": [location.value for location in CaptureLocation],
            },
            "direction": {
                "default": CaptureDirection.BOTH.value,
                "options": [direction.value for direction in CaptureDirection],
            },
            "duration_minutes": {
                "default": DEFAULT_CAPTURE_DURATION,
                "min": MIN_CAPTURE_DURATION,
                "max": MAX_CAPTURE_DURATION,
            },
            "truncation_bytes": {
                "default": 0,
                "min": MIN_TRUNCATION_BYTES,
                "max": MAX_TRUNCATION_BYTES,
                "warn_below": SAFE_TRUNCATION_BYTES,
                "description": "0 captures full packets",
            },
            "protocol": {
                "default": None,
                "options": [protocol.value for protocol in CaptureProtocol],
            },
            "radio": {
                "default": DEFAULT_RADIO,
                "options": RADIO_OPTIONS,
            },
            "destination": {
                "default": CaptureDestination.FILE.value,
                "options": [destination.value for destination in CaptureDestination],
            },
            "filters": {
                "types": ["mac", "ip"],
                "description": "Only the first MAC and the first IP filter are applied",
            },
        },
    }), 200


@api_bp.route('/captures/validate', methods=['POST'])
def validate_capture():
    """Validate a capture configuration without starting it.

    Request Body (JSON): capture configuration

    Returns:
        JSON response with the validation result and, when valid, a size estimate
    """
    logger.debug("POST /api/captures/validate called")

    try:
        config = _parse_config_body()
        manager = get_capture_manager()
        validation = manager.validate(config)

        response = {
            "success": True,
            "validation": validation.to_dict(),
        }
        if validation.valid:
            response["estimate"] = manager.estimate(
                config.duration_minutes, config.truncation_bytes
            ).to_dict()
        return jsonify(response), 200

    except CaptureError as e:
        logger.warning(f"Capture validation failed (code={e.code}, message={e.message})")
        return _error_response(e)


@api_bp.route('/captures/estimate', methods=['POST'])
def estimate_capture():
    """Estimate the capture file size.

    Request Body (JSON):
        duration_minutes: int - Capture duration in minutes
        truncation_bytes: int - Snap length (0 = full packet)
        packets_per_second: int - Expected packet rate (optional)

    Returns:
        JSON response with the estimate
    """
    data = request.get_json(silent=True) or {}

    duration = data.get("duration_minutes", DEFAULT_CAPTURE_DURATION)
    truncation = data.get("truncation_bytes", 0)
    rate = data.get("packets_per_second", DEFAULT_PACKETS_PER_SECOND)

    for name, value in (("duration_minutes", duration), ("truncation_bytes", truncation),
                        ("packets_per_second", rate)):
        if not isinstance(value, int) or isinstance(value, bool):
            return _error_response(CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message=f"'{name}' must be an integer",
                details={"field": name},
            ))

    estimate = get_capture_manager().estimate(duration, truncation, rate)
    return jsonify({
        "success": True,
        "estimate": estimate.to_dict(),
    }), 200


@api_bp.route('/captures/start', methods=['POST'])
def start_capture():
    """Start a remote packet capture.

    Request Body (JSON):
        location: str - appliance, wired or wireless (default: wireless)
        ap_id: str - Access point serial (wireless, default: first known AP)
        radio: str - Radio selector (wireless, default: all)
        include_wired_clients: bool - Include wired clients (wired)
        direction: str - both, ingress or egress (default: both)
        duration_minutes: int - 1-60 (default: 1)
        truncation_bytes: int - 0-65535 (default: 0)
        protocol: str - tcp, udp or icmp (optional)
        address_filters: list - [{"type": "mac"|"ip", "value": str}]
        destination: str - file or scp (default: file)
        scp_config: dict - server_ip, username, password, path (scp)

    Returns:
        201 with the new session and operator notices
    """
    logger.info("POST /api/captures/start called")

    try:
        config = _parse_config_body()
        result = get_capture_manager().start_capture(config)

        logger.info(f"Capture started (capture_id={result.session.id})")

        return jsonify({
            "success": True,
            **result.to_dict(),
        }), 201

    except CaptureError as e:
        logger.warning(f"Capture start failed (code={e.code}, message={e.message})")
        return _error_response(e)

    except Exception as e:
        return _unexpected_error(e, "starting capture")


@api_bp.route('/captures/<capture_id>/stop', methods=['POST'])
def stop_capture(capture_id):
    """Stop one capture.

    Returns:
        JSON response confirming the stop; on failure the session is running again
    """
    logger.info(f"POST /api/captures/{capture_id}/stop called")

    try:
        get_capture_manager().stop_capture(capture_id)
        return jsonify({
            "success": True,
            "capture_id": capture_id,
        }), 200

    except CaptureError as e:
        logger.warning(f"Capture stop failed (code={e.code}, message={e.message})")
        return _error_response(e)

    except Exception as e:
        return _unexpected_error(e, "stopping capture")


@api_bp.route('/captures/stop-all', methods=['POST'])
def stop_all_captures():
    """Stop every capture with one controller call.

    Returns:
        JSON response with the number of sessions cleared
    """
    logger.info("POST /api/captures/stop-all called")

    try:
        cleared = get_capture_manager().stop_all_captures()
        return jsonify({
            "success": True,
            "stopped": cleared,
        }), 200

    except CaptureError as e:
        logger.warning(f"Stop-all failed (code={e.code}, message={e.message})")
        return _error_response(e)

    except Exception as e:
        return _unexpected_error(e, "stopping all captures")


@api_bp.route('/captures/active', methods=['GET'])
def get_active_captures():
    """List locally tracked captures with their progress.

    Returns:
        JSON response with sessions and polling state
    """
    logger.debug("GET /api/captures/active called")

    manager = get_capture_manager()
    return jsonify({
        "success": True,
        "captures": manager.get_active_captures(),
        "polling": manager.poller.is_running,
    }), 200


@api_bp.route('/captures/refresh', methods=['POST'])
def refresh_captures():
    """Reconcile sessions and files with the controller now.

    Returns:
        JSON response with reconciled sessions and files
    """
    logger.info("POST /api/captures/refresh called")

    manager = get_capture_manager()
    try:
        manager.refresh()
        files = manager.list_files()
        return jsonify({
            "success": True,
            "captures": manager.get_active_captures(),
            "files": [f.to_dict() for f in files],
        }), 200

    except CaptureError as e:
        logger.warning(f"Capture refresh failed (code={e.code}, message={e.message})")
        return _error_response(e)


@api_bp.route('/captures/files', methods=['GET'])
def list_capture_files():
    """List capture files stored on the controller.

    Query Parameters:
        cached: bool - Return the local list without calling the controller (default: false)

    Returns:
        JSON response with capture files
    """
    logger.debug("GET /api/captures/files called")

    manager = get_capture_manager()
    cached = request.args.get("cached", "false").lower() == "true"

    try:
        files = manager.get_files() if cached else manager.list_files()
        return jsonify({
            "success": True,
            "files": [f.to_dict() for f in files],
        }), 200

    except CaptureError as e:
        logger.warning(f"Capture file listing failed (code={e.code}, message={e.message})")
        return _error_response(e)


def _resolve_filename(file_id: str) -> str:
    filename = request.args.get("filename")
    if filename:
        return filename
    known = get_capture_manager().file_registry.get_file(file_id)
    return known.filename if known else f"{file_id}.pcap"


@api_bp.route('/captures/files/<file_id>/download', methods=['GET'])
def download_capture_file(file_id):
    """Download a capture file.

    Query Parameters:
        filename: str - File name (defaults to the locally known name)

    Returns:
        The capture file as an attachment
    """
    logger.info(f"GET /api/captures/files/{file_id}/download called")

    filename = _resolve_filename(file_id)
    try:
        content = get_capture_manager().download_file(file_id, filename)
        return send_file(
            io.BytesIO(content),
            mimetype=PCAP_MIMETYPE,
            as_attachment=True,
            download_name=filename,
        )

    except CaptureError as e:
        logger.warning(f"Capture download failed (code={e.code}, message={e.message})")
        return _error_response(e)


@api_bp.route('/captures/files/<file_id>', methods=['DELETE'])
def delete_capture_file(file_id):
    """Delete a capture file.

    Returns:
        JSON response with the remaining local file list
    """
    logger.info(f"DELETE /api/captures/files/{file_id} called")

    filename = _resolve_filename(file_id)
    manager = get_capture_manager()
    try:
        manager.delete_file(file_id, filename)
        return jsonify({
            "success": True,
            "file_id": file_id,
            "files": [f.to_dict() for f in manager.get_files()],
        }), 200

    except CaptureError as e:
        logger.warning(f"Capture file deletion failed (code={e.code}, message={e.message})")
        return _error_response(e)


@api_bp.route('/captures/visibility', methods=['POST'])
def set_dashboard_visibility():
    """Report whether the dashboard is visible.

    Request Body (JSON):
        visible: bool

    Returns:
        JSON response with the polling state
    """
    data = request.get_json(silent=True) or {}
    visible = data.get("visible")
    if not isinstance(visible, bool):
        return _error_response(CaptureValidationError(
            code=CAPTURE_INVALID_CONFIG,
            message="'visible' must be a boolean",
            details={"field": "visible"},
        ))

    manager = get_capture_manager()
    manager.set_visible(visible)
    return jsonify({
        "success": True,
        "visible": visible,
        "polling": manager.poller.is_running,
    }), 200
