"""Flask web server exposing fusion analysis as a JSON API"""
import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from fusioncheck.__version__ import __version__
from fusioncheck.config import AnalysisConfig
from fusioncheck.error_handling import (
    ConfigurationError,
    FusionCheckError,
    InputError,
    NoInstructionsFound,
)
from fusioncheck.pipeline import analyze_disassembly
from fusioncheck.rules import available_catalogs, get_catalog

logger = logging.getLogger(__name__)


class FusionWebServer:
    """JSON API around the parse+analyze pipeline"""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Args:
            config: Defaults for requests that do not override them
        """
        self.config = config or AnalysisConfig()
        self.app = Flask(__name__)
        self.app.config['MAX_CONTENT_LENGTH'] = 256 * 1024 * 1024  # disassembly of large binaries
        self.port = 8080

        self._register_routes()

    def _register_routes(self):
        app = self.app

        @app.route('/api/health')
        def health():
            return jsonify({'status': 'ok', 'version': __version__})

        @app.route('/api/catalogs')
        def list_catalogs():
            return jsonify({
                'default': self.config.catalog_name,
                'catalogs': [get_catalog(name).to_dict() for name in available_catalogs()],
            })

        @app.route('/api/catalogs/<name>')
        def show_catalog(name):
            try:
                return jsonify(get_catalog(name).to_dict())
            except ConfigurationError as e:
                return jsonify(e.to_dict()), 404

        @app.route('/api/analyze', methods=['POST'])
        def analyze():
            try:
                text, config = self._read_request()
                report = analyze_disassembly(text, config=config)
            except NoInstructionsFound as e:
                return jsonify(e.to_dict()), 422
            except (InputError, ConfigurationError) as e:
                return jsonify(e.to_dict()), 400
            except FusionCheckError as e:
                logger.error(e.message)
                return jsonify(e.to_dict()), 500

            payload = report.summary.to_dict()
            payload['functions_parsed'] = len(report.parse.functions)
            return jsonify(payload)

    def _read_request(self) -> Tuple[str, AnalysisConfig]:
        """Disassembly text and per-request config from a JSON or raw-text body"""
        options: Dict[str, Any] = {}
        if request.is_json:
            body = request.get_json(silent=True)
            if not isinstance(body, dict) or not isinstance(body.get('disassembly'), str):
                raise InputError("JSON body must contain a 'disassembly' string")
            text = body['disassembly']
            options = body
        else:
            text = request.get_data(as_text=True)
            options = request.args

        for key in ('function', 'catalog'):
            value = options.get(key)
            if value is not None and not isinstance(value, str):
                raise InputError(f"'{key}' must be a string")

        verbose = options.get('verbose', self.config.verbose)
        if isinstance(verbose, str):
            verbose = verbose.lower() in ('1', 'true', 'yes')

        config = AnalysisConfig(
            function_filter=options.get('function') or self.config.function_filter,
            verbose=bool(verbose),
            catalog_name=options.get('catalog') or self.config.catalog_name,
            miss_example_limit=self.config.miss_example_limit,
            top_functions=self.config.top_functions,
            workers=self.config.workers,
        )
        return text, config

    def run(self, host: str = '127.0.0.1', port: Optional[int] = None):
        """Start the development server (blocking)"""
        port = port or self.port
        print(f"🌐 fusioncheck API running on http://{host}:{port}")
        print("POST disassembly text to /api/analyze")
        print("Press Ctrl+C to stop\n")
        self.app.run(host=host, port=port, debug=False, use_reloader=False)
