#!/usr/bin/env python3
"""
Balance Reconciliation Engine - Web Interface

A Flask-based service that extracts statement fields from uploaded PDFs and
reports, per account, whether the final balances agree.
"""
import atexit
import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from threading import Lock, Thread
from time import sleep
from typing import Dict, List

from flask import Flask, jsonify, request, send_file
from werkzeug.utils import secure_filename

from config import APP_NAME, APP_VERSION, SUPPORTED_LANGUAGES, get_api_key
from extractors import EXTRACTION_BACKENDS, ExtractionError, get_extractor
from output.excel_generator import generate_reconciliation_excel
from reconciler.balance_checker import BalanceReconciler, build_payload, summarize
from reconciler.models import ExtractedRecord, InvalidInputError


# =============================================================================
# Application Configuration
# =============================================================================

app = Flask(__name__)

# Configure logging for production
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# File storage configuration
UPLOAD_FOLDER = tempfile.mkdtemp(prefix='reconcile_upload_')
OUTPUT_FOLDER = tempfile.mkdtemp(prefix='reconcile_output_')
MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB max upload size
OUTPUT_MAX_AGE_MINUTES = 60

GENERIC_ERROR = 'An unexpected error occurred while analyzing the documents. Please try again.'

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Track output files for cleanup (guarded by _output_files_lock)
output_files: Dict[str, datetime] = {}
_output_files_lock = Lock()


# =============================================================================
# Cleanup Functions
# =============================================================================

def remove_expired_outputs(now: datetime) -> List[str]:
    """Delete report files older than OUTPUT_MAX_AGE_MINUTES."""
    with _output_files_lock:
        expired = [
            filename for filename, created_at in output_files.items()
            if (now - created_at).total_seconds() / 60 > OUTPUT_MAX_AGE_MINUTES
        ]

    for filename in expired:
        filepath = os.path.join(OUTPUT_FOLDER, filename)
        try:
            if os.path.exists(filepath):
                os.unlink(filepath)
                logger.info(f"Cleaned up old file: {filename}")
        except OSError as e:
            logger.error(f"Error cleaning up {filename}: {e}")
        with _output_files_lock:
            output_files.pop(filename, None)

    return expired


def cleanup_old_files():
    """Background task to clean up old output files."""
    while True:
        sleep(300)  # Run every 5 minutes
        try:
            remove_expired_outputs(datetime.now())
        except Exception as e:
            logger.error(f"Error in cleanup task: {e}")


def cleanup_on_exit():
    """Clean up temporary directories on application exit."""
    shutil.rmtree(UPLOAD_FOLDER, ignore_errors=True)
    shutil.rmtree(OUTPUT_FOLDER, ignore_errors=True)
    logger.info("Cleaned up temporary directories")


# Register cleanup on exit
atexit.register(cleanup_on_exit)

# Start background cleanup thread (only in production)
if not os.environ.get('FLASK_DEBUG'):
    cleanup_thread = Thread(target=cleanup_old_files, daemon=True)
    cleanup_thread.start()


# =============================================================================
# Helpers
# =============================================================================

def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def _language_option(value):
    if value is not None and not isinstance(value, str):
        raise InvalidInputError(f"'language' must be a string, got {type(value).__name__}")
    if value and value.lower() not in SUPPORTED_LANGUAGES:
        raise InvalidInputError(
            f"Unsupported language: {value} (expected one of {', '.join(SUPPORTED_LANGUAGES)})"
        )
    return value.lower() if value else None


# =============================================================================
# Routes
# =============================================================================

@app.route('/reconcile', methods=['POST'])
def reconcile_uploads():
    """Extract fields from uploaded PDFs and reconcile their balances."""
    files = [f for f in request.files.getlist('files') if f.filename]
    if not files:
        return _error('No files uploaded', 400)

    for file in files:
        if os.path.splitext(file.filename)[1].lower() != '.pdf':
            return _error(f'Unsupported file format: {file.filename}. Please upload PDF files.', 400)

    backend = request.form.get('extractor') or None
    if backend and backend not in EXTRACTION_BACKENDS:
        return _error(f'Unknown extractor: {backend}', 400)

    saved_paths: List[str] = []
    try:
        language = _language_option(request.form.get('language'))
        extractor = get_extractor(backend, api_key=get_api_key())

        # Every document is extracted before reconciliation starts
        records: List[ExtractedRecord] = []
        for file in files:
            unique_id = str(uuid.uuid4())[:8]
            input_path = os.path.join(UPLOAD_FOLDER, f"input_{unique_id}_{secure_filename(file.filename)}")
            file.save(input_path)
            saved_paths.append(input_path)
            records.append(extractor.extract(input_path, file_name=file.filename))

        logger.info(f"Extracted {len(records)} uploaded document(s)")

        account_groups = BalanceReconciler(language).reconcile(records)

        output_filename = f"reconciliation_{str(uuid.uuid4())[:8]}.xlsx"
        generate_reconciliation_excel(account_groups, os.path.join(OUTPUT_FOLDER, output_filename))
        with _output_files_lock:
            output_files[output_filename] = datetime.now()

        return jsonify({
            'success': True,
            'data': build_payload(account_groups),
            'summary': summarize(account_groups),
            'output_file': output_filename,
        })

    except InvalidInputError as e:
        logger.warning(f"Rejected upload batch: {e}")
        return _error(str(e), 400)

    except ExtractionError as e:
        logger.warning(f"Extraction failed for {e.file_name}: {e}")
        return _error(str(e), 422)

    except Exception as e:
        logger.error(f"Error during document reconciliation: {e}")
        return _error(GENERIC_ERROR, 500)

    finally:
        for input_path in saved_paths:
            try:
                os.unlink(input_path)
            except OSError as e:
                logger.error(f"Error cleaning up input file: {e}")


@app.route('/api/reconcile', methods=['POST'])
def reconcile_records():
    """Reconcile already extracted records posted as JSON."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error('Request body must be a JSON object', 400)

    try:
        language = _language_option(payload.get('language'))
        documents = payload.get('documents')
        if documents is not None and not isinstance(documents, list):
            raise InvalidInputError("'documents' must be a list")

        account_groups = BalanceReconciler(language).reconcile(documents)

    except InvalidInputError as e:
        return _error(str(e), 400)

    return jsonify({
        'success': True,
        'data': build_payload(account_groups),
        'summary': summarize(account_groups),
    })


@app.route('/download/<filename>')
def download_file(filename):
    """Download a generated Excel report."""
    # Security: only allow alphanumeric filenames with underscores and dots
    if not filename.replace('_', '').replace('.', '').isalnum():
        return _error('Invalid filename', 400)

    file_path = os.path.realpath(os.path.join(OUTPUT_FOLDER, filename))
    # Ensure the resolved path is actually within OUTPUT_FOLDER
    if not file_path.startswith(os.path.realpath(OUTPUT_FOLDER) + os.sep):
        return _error('Invalid filename', 400)

    if not os.path.exists(file_path):
        return _error('File not found or expired. Please reconcile the documents again.', 404)

    logger.info(f"File downloaded: {filename}")

    return send_file(
        file_path,
        as_attachment=True,
        download_name=f"balance_reconciliation_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    )


@app.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'app': APP_NAME,
        'version': APP_VERSION,
        'timestamp': datetime.now().isoformat()
    })


@app.errorhandler(413)
def file_too_large(e):
    """Handle file too large error."""
    return _error(f'Upload too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)} MB.', 413)


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return _error(GENERIC_ERROR, 500)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting {APP_NAME} v{APP_VERSION} on port {port}")

    app.run(host='0.0.0.0', port=port, debug=debug)
