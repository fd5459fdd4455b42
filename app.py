"""
Creative Review - Main Flask Application
Upload creatives, share review links, collect comments and approvals
"""
from flask import Flask, request, jsonify, send_from_directory, g
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from config_logging import AppConfig, StructuredLogger, get_config, get_logger, APP_NAME, VERSION
from creative_review.routes import cr_blueprint

logger = get_logger('creative_review.app')


def create_app(config: AppConfig = None) -> Flask:
    """Build the Flask application and register the review API."""
    config = config or get_config()

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
    app.config['UPLOAD_FOLDER'] = str(config.upload_dir)

    app.register_blueprint(cr_blueprint, url_prefix='/api')

    @app.before_request
    def assign_correlation_id():
        """Tag each request so its log lines can be grouped."""
        incoming = request.headers.get('X-Correlation-ID')
        if incoming:
            StructuredLogger.set_correlation_id(incoming[:64])
            g.correlation_id = incoming[:64]
        else:
            g.correlation_id = StructuredLogger.new_correlation_id()

    @app.after_request
    def echo_correlation_id(response):
        response.headers['X-Correlation-ID'] = getattr(g, 'correlation_id', '')
        return response

    @app.route('/uploads/<project_id>/<path:filename>')
    def serve_upload(project_id, filename):
        """Serve an uploaded creative"""
        return send_from_directory(config.upload_dir / project_id, filename)

    @app.route('/api/version')
    def version():
        return jsonify({'app': APP_NAME, 'version': VERSION})

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(e):
        max_mb = config.max_content_length // (1024 * 1024)
        logger.warning("Upload rejected: request too large", path=request.path)
        return jsonify({
            'success': False,
            'error': {
                'code': 'FILE_TOO_LARGE',
                'message': f'File too large. Maximum size is {max_mb}MB per upload.',
                'correlation_id': getattr(g, 'correlation_id', 'unknown')
            }
        }), 413

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({
            'success': False,
            'error': {
                'code': e.name.upper().replace(' ', '_'),
                'message': e.description,
                'correlation_id': getattr(g, 'correlation_id', 'unknown')
            }
        }), e.code

    return app


if __name__ == '__main__':
    config = get_config()
    is_valid, errors = config.validate()
    for error in errors:
        logger.error(f"Configuration error: {error}")
    if not is_valid:
        raise SystemExit(1)

    print("=" * 60)
    print(f"  {APP_NAME} v{VERSION}")
    print(f"  Starting server at http://{config.host}:{config.port}")
    print("=" * 60)
    create_app(config).run(host=config.host, port=config.port, debug=config.debug)
