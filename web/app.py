"""
Practice Financial Resiliency Assessment - Flask Web Application

JSON API for the patient billing readiness assessment: visible questions,
live scoring, full results, PDF and CSV exports and webhook submission.
"""

import io
import os
import sys
import logging
from flask import Flask, Response, request, jsonify, send_file
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import ProductionConfig, get_config
from src.assessment.assessment_engine import AssessmentEngine
from src.assessment.catalog import load_catalog
from src.integrations.webhook_client import WebhookClient, WebhookConfig
from src.reporting.export import generate_csv, generate_results_summary, prepare_export_data
from src.reporting.pdf_report import generate_pdf_report

# Configure logging
logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))
logger = logging.getLogger(__name__)


class BadRequest(Exception):
    """Malformed request body"""


# =============================================================================
# App Factory
# =============================================================================

def create_app(config_class=None):
    """Create Flask application"""
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    if config_class is ProductionConfig:
        config_class.validate()
    app.config.from_object(config_class)

    # Rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config['RATELIMIT_DEFAULT']],
        storage_uri=app.config['RATELIMIT_STORAGE_URL'],
        enabled=app.config['RATELIMIT_ENABLED']
    )
    app.extensions['assessment_limiter'] = limiter

    engine = AssessmentEngine(
        catalog=load_catalog(default_segment=app.config['DEFAULT_SEGMENT']),
        default_category_score=app.config['DEFAULT_CATEGORY_SCORE']
    )
    webhook = WebhookClient(WebhookConfig.from_app_config(app.config))

    def _json_body():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise BadRequest('Request body must be a JSON object')
        return data

    def _answers(data):
        answers = data.get('answers', {})
        if not isinstance(answers, dict):
            raise BadRequest('answers must be an object')
        return answers

    def _form(data):
        form = data.get('form', {})
        if not isinstance(form, dict):
            raise BadRequest('form must be an object')
        return form

    # =============================================================================
    # API Routes - Catalog
    # =============================================================================

    @app.route('/api/segments', methods=['GET'])
    def api_list_segments():
        """List practice segments and their category weights"""
        return jsonify({
            'segments': engine.get_segments(),
            'categories': list(engine.catalog.category_names),
            'default_segment': engine.catalog.default_segment
        })

    @app.route('/api/assessment/questions', methods=['POST'])
    def api_visible_questions():
        """Questions visible for the current answers"""
        answers = _answers(_json_body())
        questions = engine.visible_questions(answers)
        return jsonify({
            'segment': engine.catalog.segment_for(answers),
            'questions': [q.to_dict() for q in questions],
            'validation': engine.validate_answers(answers)
        })

    # =============================================================================
    # API Routes - Scoring
    # =============================================================================

    @app.route('/api/assessment/score', methods=['POST'])
    def api_score():
        """Live scores and benchmark gaps"""
        answers = _answers(_json_body())
        scores = engine.calculate_scores(answers)
        return jsonify({
            'scores': scores.to_dict(),
            'score_level': engine.score_level(scores.overall).to_dict(),
            'gap_analysis': engine.gap_analysis(scores).to_dict()
        })

    @app.route('/api/assessment/results', methods=['POST'])
    def api_results():
        """Full assessment result"""
        data = _json_body()
        result = engine.assess(_answers(data), assessment_id=data.get('assessment_id'))
        summary = generate_results_summary(
            result.scores, result.insights, result.recommendations,
            result.resiliency, result.score_level.label
        )
        return jsonify({
            'result': result.to_dict(),
            'summary': summary
        })

    # =============================================================================
    # API Routes - Exports
    # =============================================================================

    @app.route('/api/assessment/report.pdf', methods=['POST'])
    def api_pdf_report():
        """Download the PDF report"""
        data = _json_body()
        result = engine.assess(_answers(data))
        pdf_bytes = generate_pdf_report(
            _form(data), result,
            brand=app.config['REPORT_BRAND'],
            category_names=engine.catalog.category_names
        )
        return send_file(
            io.BytesIO(pdf_bytes),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=f"resiliency-report-{result.assessment_id[:8]}.pdf"
        )

    @app.route('/api/assessment/export.csv', methods=['POST'])
    def api_csv_export():
        """Download the CSV export"""
        data = _json_body()
        result = engine.assess(_answers(data))
        export_data = prepare_export_data(_form(data), result, engine.catalog)
        return Response(
            generate_csv(export_data),
            mimetype='text/csv',
            headers={'Content-Disposition': f"attachment; filename=assessment-{result.assessment_id[:8]}.csv"}
        )

    @app.route('/api/assessment/submit', methods=['POST'])
    def api_submit():
        """Send the export record to the configured webhook"""
        data = _json_body()
        result = engine.assess(_answers(data))
        export_data = prepare_export_data(_form(data), result, engine.catalog)
        delivery = webhook.send(export_data)
        return jsonify({
            'assessment_id': result.assessment_id,
            'webhook': delivery.to_dict(),
            'export': export_data
        })

    # =============================================================================
    # Error Handlers
    # =============================================================================

    @app.errorhandler(BadRequest)
    def bad_request(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f"Server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    logger.info(f"{app.config['APP_NAME']} ready with {len(engine.catalog)} questions")
    return app


# =============================================================================
# Main
# =============================================================================

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    app.run(debug=debug, port=port, host='0.0.0.0')
