"""
Creative Review Flask Routes
============================
API endpoints for projects, creatives, text revision history,
comments and pin placement.

All responses use the ``{'success': ..., ...}`` envelope; errors carry
``{'code', 'message', 'details', 'correlation_id'}``.
"""

import math
import os
import shutil
import time
import uuid
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Blueprint, request, jsonify, g
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from config_logging import (
    get_config, get_logger, handle_errors, validate_file_extension,
    CreativeReviewError, ValidationError, FileError, NotFoundError,
    SLOW_CALL_SECONDS, VIDEO_EXTENSIONS, DOCUMENT_EXTENSIONS,
)

from .differ import WordDiffEngine
from .models import (
    Comment, Creative, CreativeStatus, MediaType, PinAnnotation, TextField, utc_now,
)
from .pins import PinCoordinateMapper
from .store import find_creative, find_project, get_project_store
from .tracker import RevisionTracker

logger = get_logger('creative_review')

cr_blueprint = Blueprint('creative_review', __name__)

_diff_engine = WordDiffEngine()
_tracker = RevisionTracker(_diff_engine)
_pin_mapper = PinCoordinateMapper()


# =============================================================================
# STANDARDIZED ERROR HANDLING DECORATOR
# =============================================================================

def _error_response(code: str, message: str, status: int, details: Optional[Dict] = None):
    return jsonify({
        'success': False,
        'error': {
            'code': code,
            'message': message,
            'details': details or {},
            'correlation_id': getattr(g, 'correlation_id', 'unknown')
        }
    }), status


def handle_cr_errors(f):
    """
    Decorator for standardized API error handling in Creative Review routes.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        start_time = time.time()
        try:
            result = f(*args, **kwargs)

            elapsed = time.time() - start_time
            if elapsed > SLOW_CALL_SECONDS:
                logger.warning(f"Slow CR API call: {f.__name__} took {elapsed:.1f}s")

            return result

        except CreativeReviewError as e:
            if e.status_code >= 500:
                logger.error(f"{e.code} in {f.__name__}: {e.message}")
            else:
                logger.warning(f"{e.code} in {f.__name__}: {e.message}")
            return _error_response(e.code, e.message, e.status_code, e.details)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in {f.__name__}: {e}")
            return _error_response('INTERNAL_ERROR', 'An unexpected error occurred', 500)

    return decorated


# =============================================================================
# REQUEST HELPERS
# =============================================================================

def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _require_number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{key}' must be a number", field=key)
    if not math.isfinite(value):
        raise ValidationError(f"'{key}' must be a finite number", field=key)
    return float(value)


def _optional_string(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string", field=key)
    return value


def _parse_text_field(name: str) -> TextField:
    try:
        return TextField(name)
    except ValueError:
        raise ValidationError(f"Unknown text field: {name}", field='field')


def _parse_pin(raw: Any) -> Optional[PinAnnotation]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("'pin' must be an object with x and y", field='pin')
    x = _require_number(raw, 'x')
    y = _require_number(raw, 'y')
    if not (0 <= x <= 100 and 0 <= y <= 100):
        raise ValidationError("Pin coordinates must be between 0 and 100", field='pin')
    return PinAnnotation(x=x, y=y)


def _media_type_for(filename: str) -> MediaType:
    ext = os.path.splitext(filename)[1].lower()
    if ext in VIDEO_EXTENSIONS:
        return MediaType.VIDEO
    if ext in DOCUMENT_EXTENSIONS:
        return MediaType.PDF
    return MediaType.IMAGE


@handle_errors(logger)
def _save_upload(upload, destination: Path) -> int:
    """Write an uploaded file to disk and return its size in bytes."""
    upload.save(str(destination))
    return destination.stat().st_size


def _stored_filename(original_name: str) -> str:
    """Sanitized name with a millisecond timestamp and random suffix before the extension."""
    base, ext = os.path.splitext(original_name)
    safe_base = secure_filename(base) or 'file'
    return f"{safe_base}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{ext.lower()}"


# =============================================================================
# PROJECT ENDPOINTS
# =============================================================================

@cr_blueprint.route('/projects', methods=['GET'])
@handle_cr_errors
def list_projects():
    """
    Get summaries of all projects.

    Returns:
        { success: true, projects: [ {id, name, client_name, created_at,
          creative_count, approved_count, pending_count, revision_count} ] }
    """
    projects = get_project_store().list_summaries()
    return jsonify({'success': True, 'projects': projects, 'count': len(projects)})


@cr_blueprint.route('/projects', methods=['POST'])
@handle_cr_errors
def create_project():
    """
    Create a project.

    Request body:
        { name: str, client_name?: str }
    """
    data = _json_body()
    name = (_optional_string(data, 'name') or '').strip()
    if not name:
        raise ValidationError("Project name is required", field='name')
    client_name = (_optional_string(data, 'client_name') or '').strip()

    project = get_project_store().create_project(name, client_name)
    return jsonify({'success': True, 'project': project.to_dict()}), 201


@cr_blueprint.route('/projects/<project_id>', methods=['GET'])
@handle_cr_errors
def get_project(project_id: str):
    """Get a project with all its creatives."""
    project = get_project_store().get_project(project_id)
    return jsonify({'success': True, 'project': project.to_dict()})


@cr_blueprint.route('/projects/<project_id>', methods=['DELETE'])
@handle_cr_errors
def delete_project(project_id: str):
    """Delete a project and its uploaded files."""
    get_project_store().delete_project(project_id)

    upload_dir = get_config().upload_dir / secure_filename(project_id)
    if upload_dir.is_dir():
        shutil.rmtree(upload_dir, ignore_errors=True)

    return jsonify({'success': True})


# =============================================================================
# CREATIVE ENDPOINTS
# =============================================================================

@cr_blueprint.route('/projects/<project_id>/creatives', methods=['POST'])
@handle_cr_errors
def upload_creatives(project_id: str):
    """
    Upload one or more creatives (multipart field ``files``).

    Returns:
        { success: true, creatives: [...] }
    """
    config = get_config()
    store = get_project_store()
    store.get_project(project_id)

    files = [f for f in request.files.getlist('files') if f and f.filename]
    if not files:
        raise ValidationError("No files uploaded", field='files')
    if len(files) > config.max_files_per_upload:
        raise ValidationError(
            f"Too many files. Maximum is {config.max_files_per_upload} files at once.",
            field='files'
        )
    for upload in files:
        if not validate_file_extension(upload.filename):
            raise FileError(
                "File type not supported. Please upload images, videos, or PDFs.",
                filename=upload.filename
            )

    target_dir = config.upload_dir / secure_filename(project_id)
    target_dir.mkdir(parents=True, exist_ok=True)

    creatives = []
    written = []
    try:
        with logger.log_operation('upload_creatives', project_id=project_id, files=len(files)):
            for upload in files:
                file_name = _stored_filename(upload.filename)
                destination = target_dir / file_name
                written.append(destination)
                creatives.append(Creative(
                    original_name=upload.filename,
                    file_name=file_name,
                    file_path=f"/uploads/{target_dir.name}/{file_name}",
                    file_size=_save_upload(upload, destination),
                    mime_type=upload.mimetype or 'application/octet-stream',
                    media_type=_media_type_for(upload.filename),
                ))
        store.add_creatives(project_id, creatives)
    except Exception:
        # No creative references a partially written batch
        for destination in written:
            if destination.is_file():
                destination.unlink()
        raise

    return jsonify({'success': True, 'creatives': [c.to_dict() for c in creatives]}), 201


@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>', methods=['GET'])
@handle_cr_errors
def get_creative(project_id: str, creative_id: str):
    """Get a creative together with basic project info."""
    project, creative = get_project_store().get_creative(project_id, creative_id)
    return jsonify({
        'success': True,
        'project': {'id': project.id, 'name': project.name, 'client_name': project.client_name},
        'creative': creative.to_dict()
    })


@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>', methods=['PATCH'])
@handle_cr_errors
def update_creative(project_id: str, creative_id: str):
    """
    Update title, status, caption and/or extracted image text.

    Request body:
        { title?, status?, caption?, image_text?, author? }

    The first save of a text field records its original value; later
    changes need an author and are appended to the field's history.
    Nothing is written if any part of the update is rejected.
    """
    data = _json_body()
    title = _optional_string(data, 'title')
    status_value = _optional_string(data, 'status')
    author = (_optional_string(data, 'author') or '').strip() or None

    status = None
    if status_value is not None:
        try:
            status = CreativeStatus(status_value)
        except ValueError:
            raise ValidationError("Invalid status", field='status', value=status_value)

    text_updates = {}
    for text_field in TextField:
        value = _optional_string(data, text_field.value)
        if value is not None:
            text_updates[text_field] = value

    now = utc_now()
    store = get_project_store()
    with store.transaction() as projects:
        creative = find_creative(find_project(projects, project_id), creative_id)

        if title is not None:
            creative.title = title
        if status is not None:
            creative.set_status(status)
        for text_field, value in text_updates.items():
            log = _tracker.record_edit(creative.get_log(text_field), value, author, now)
            creative.set_log(text_field, log)

    if text_updates:
        logger.info(
            f"Updated text on creative {creative_id}",
            fields=[f.value for f in text_updates], author=author
        )
    return jsonify({'success': True, 'creative': creative.to_dict()})


@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>', methods=['DELETE'])
@handle_cr_errors
def delete_creative(project_id: str, creative_id: str):
    """Delete a creative and its stored file."""
    creative = get_project_store().delete_creative(project_id, creative_id)

    file_path = get_config().upload_dir / secure_filename(project_id) / creative.file_name
    if creative.file_name and file_path.is_file():
        file_path.unlink()

    return jsonify({'success': True})


# =============================================================================
# TEXT HISTORY ENDPOINTS
# =============================================================================

@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>/text/<field_name>/changes',
                    methods=['GET'])
@handle_cr_errors
def text_changes(project_id: str, creative_id: str, field_name: str):
    """
    Diff a text field's original value against its current value.

    Returns:
        { success: true, field, original, current, changed: bool, diff: {...} | null }
    """
    text_field = _parse_text_field(field_name)
    _, creative = get_project_store().get_creative(project_id, creative_id)
    log = creative.get_log(text_field)

    diff = _tracker.changes_from_original(log)
    return jsonify({
        'success': True,
        'field': text_field.value,
        'original': log.original if log else None,
        'current': log.current if log else None,
        'changed': diff is not None,
        'diff': diff.to_dict() if diff else None
    })


@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>/text/<field_name>/history',
                    methods=['GET'])
@handle_cr_errors
def text_history(project_id: str, creative_id: str, field_name: str):
    """
    Timeline of edits to a text field, most recent first.

    Returns:
        { success: true, field, steps: [ {index, before, after, author, timestamp, diff} ] }
    """
    text_field = _parse_text_field(field_name)
    _, creative = get_project_store().get_creative(project_id, creative_id)

    steps = _tracker.history_timeline(creative.get_log(text_field))
    return jsonify({
        'success': True,
        'field': text_field.value,
        'steps': [s.to_dict() for s in steps],
        'count': len(steps)
    })


@cr_blueprint.route('/diff', methods=['POST'])
@handle_cr_errors
def diff_texts():
    """
    Ad-hoc word diff.

    Request body:
        { old_text: str, new_text: str }
    """
    data = _json_body()
    old_text = _optional_string(data, 'old_text') or ''
    new_text = _optional_string(data, 'new_text') or ''

    result = _diff_engine.diff(old_text, new_text)
    return jsonify({'success': True, 'diff': result.to_dict()})


# =============================================================================
# COMMENT AND PIN ENDPOINTS
# =============================================================================

@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>/comments', methods=['POST'])
@handle_cr_errors
def add_comment(project_id: str, creative_id: str):
    """
    Add a comment, optionally pinned and/or replying to another comment.

    Request body:
        { text: str, author?: str, pin?: {x, y}, parent_id?: str }
    """
    data = _json_body()
    text = (_optional_string(data, 'text') or '').strip()
    if not text:
        raise ValidationError("Comment text is required", field='text')
    author = (_optional_string(data, 'author') or '').strip() or 'Anonymous'
    pin = _parse_pin(data.get('pin'))
    parent_id = _optional_string(data, 'parent_id')

    store = get_project_store()
    with store.transaction() as projects:
        creative = find_creative(find_project(projects, project_id), creative_id)
        if parent_id is not None and creative.find_comment(parent_id) is None:
            raise ValidationError("Parent comment not found", field='parent_id')

        comment = Comment(author=author, text=text, pin=pin, parent_id=parent_id)
        creative.comments.append(comment)

    return jsonify({'success': True, 'comment': comment.to_dict()}), 201


@cr_blueprint.route('/projects/<project_id>/creatives/<creative_id>/comments/<comment_id>',
                    methods=['DELETE'])
@handle_cr_errors
def delete_comment(project_id: str, creative_id: str, comment_id: str):
    """Delete a comment and all replies beneath it."""
    store = get_project_store()
    with store.transaction() as projects:
        creative = find_creative(find_project(projects, project_id), creative_id)
        if creative.find_comment(comment_id) is None:
            raise NotFoundError("Comment not found", resource='comment', id=comment_id)
        removed = creative.remove_comment_thread(comment_id)

    return jsonify({'success': True, 'removed': removed})


@cr_blueprint.route('/pins/resolve', methods=['POST'])
@handle_cr_errors
def resolve_pin():
    """
    Map a viewport click to pin coordinates.

    Request body:
        { click_x, click_y, viewport_width, viewport_height, zoom?, pan_x?, pan_y? }

    Returns:
        { success: true, in_bounds: bool, pin: {x, y} | null, position: {left, top} | null }
    """
    data = _json_body()
    try:
        result = _pin_mapper.to_percent(
            _require_number(data, 'click_x'),
            _require_number(data, 'click_y'),
            _require_number(data, 'viewport_width'),
            _require_number(data, 'viewport_height'),
            zoom=_require_number(data, 'zoom', 1.0),
            pan_x=_require_number(data, 'pan_x', 0.0),
            pan_y=_require_number(data, 'pan_y', 0.0),
        )
    except ValueError as e:
        raise ValidationError(str(e))

    if not result:
        return jsonify({'success': True, 'in_bounds': False, 'pin': None, 'position': None})
    return jsonify({
        'success': True,
        'in_bounds': True,
        'pin': result.to_dict(),
        'position': _pin_mapper.to_css_position(result)
    })


@cr_blueprint.route('/pins/clamp-pan', methods=['POST'])
@handle_cr_errors
def clamp_pan():
    """
    Clamp a pan offset so zoomed content cannot be dragged out of view.

    Request body:
        { pan_x, pan_y, zoom, content_width, content_height,
          viewport_width, viewport_height }
    """
    data = _json_body()
    pan_x, pan_y = _pin_mapper.clamp_pan(
        _require_number(data, 'pan_x'),
        _require_number(data, 'pan_y'),
        _require_number(data, 'zoom'),
        _require_number(data, 'content_width'),
        _require_number(data, 'content_height'),
        _require_number(data, 'viewport_width'),
        _require_number(data, 'viewport_height'),
    )
    return jsonify({'success': True, 'pan_x': pan_x, 'pan_y': pan_y})


@cr_blueprint.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint with storage diagnostics."""
    store = get_project_store()
    store_path: Path = store.path
    project_count = 0
    try:
        project_count = len(store.load())
    except Exception as e:
        logger.error(f"Health check storage error: {e}")

    return jsonify({
        'success': True,
        'module': 'creative_review',
        'status': 'healthy',
        'storage': {
            'path': str(store_path),
            'exists': store_path.exists(),
            'projects': project_count
        }
    })
