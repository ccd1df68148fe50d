#!/usr/bin/env python3
"""
Patch-Fill API Server
One endpoint per tool; every call starts from the uploaded image and
returns the encoded result as a download.
"""

import os
import json
import math
import logging
from io import BytesIO

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .models.errors import EngineError, InvalidRegionError
from .models.rect import PercentRegion, RawRect
from .pipeline.object_eraser import DEFAULT_BLEND_STRENGTH, erase_objects
from .pipeline.watermark_remover import DEFAULT_FEATHER, DEFAULT_PASSES, DEFAULT_QUALITY, remove_watermark
from .services.image_service import ImageService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25")) * 1024 * 1024
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)


def _read_upload():
    """Decode the multipart 'image' field → (Image, filename)."""
    if 'image' not in request.files:
        raise InvalidRegionError("No image provided")
    file = request.files['image']
    if file.filename == '':
        raise InvalidRegionError("No file selected")
    filename = secure_filename(file.filename)
    return image_service.decode(file.read(), filename), filename


def _form_float(name: str, default: float) -> float:
    value = request.form.get(name)
    if value in (None, ''):
        return default
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return number


def _send_result(result):
    response = send_file(
        BytesIO(result.data),
        mimetype=result.mime_type,
        as_attachment=True,
        download_name=result.filename,
    )
    response.headers['X-Image-Width'] = str(result.width)
    response.headers['X-Image-Height'] = str(result.height)
    response.headers['X-Regions'] = json.dumps([r.as_dict() for r in result.regions])
    return response


@app.errorhandler(InvalidRegionError)
@app.errorhandler(ValueError)
def bad_request(e):
    """Invalid region or parameter."""
    return jsonify({'success': False, 'message': str(e)}), 400


@app.errorhandler(EngineError)
def engine_failure(e):
    """Drawing or encoding failed; the upload is left as it was."""
    logger.error(f"Engine error: {e}")
    return jsonify({'success': False, 'message': EngineError.user_message}), 500


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'success': False,
                    'message': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.route('/api/remove-watermark', methods=['POST'])
def remove_watermark_endpoint():
    """Remove a watermark from one percent-sized area."""
    image, filename = _read_upload()
    area = PercentRegion(
        x=_form_float('x', 30.0),
        y=_form_float('y', 30.0),
        width=_form_float('width', 32.0),
        height=_form_float('height', 16.0),
    )
    logger.info(f"Remove watermark: {filename} {image.width}x{image.height} area={area}")

    result = remove_watermark(
        image,
        area,
        passes=_form_float('passes', DEFAULT_PASSES),
        feather=_form_float('feather', DEFAULT_FEATHER),
        direction=request.form.get('direction', 'auto'),
        output_format=request.form.get('format') or None,
        quality=_form_float('quality', DEFAULT_QUALITY),
        source_name=filename,
        image_service=image_service,
    )
    return _send_result(result)


@app.route('/api/erase-objects', methods=['POST'])
def erase_objects_endpoint():
    """Erase every pixel region listed in the 'regions' JSON field."""
    image, filename = _read_upload()
    try:
        raw_regions = json.loads(request.form.get('regions', '[]'))
        regions = [RawRect(x=float(r['x']), y=float(r['y']),
                           width=float(r['width']), height=float(r['height']))
                   for r in raw_regions]
    except (json.JSONDecodeError, KeyError, TypeError) as err:
        raise InvalidRegionError(f"Malformed regions: {err}") from err
    logger.info(f"Erase objects: {filename} {image.width}x{image.height}, {len(regions)} region(s)")

    result = erase_objects(
        image,
        regions,
        blend_strength=_form_float('blend_strength', DEFAULT_BLEND_STRENGTH),
        strategy=request.form.get('strategy', 'patch'),
        image_service=image_service,
    )
    return _send_result(result)


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Patch-Fill API is running',
    })


def main():
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    logger.info(f"Max upload size: {MAX_CONTENT_LENGTH // (1024 * 1024)}MB, CORS enabled")
    app.run(host=os.getenv("API_HOST", "127.0.0.1"), port=int(os.getenv("API_PORT", "5000")))


if __name__ == '__main__':
    main()
