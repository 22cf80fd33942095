"""
API Routes
==========
Flask blueprints for all API endpoints.
"""
from flask import Blueprint, request, jsonify

from content_translator import __version__
from content_translator.config import config
from content_translator.config.constants import EvaluationStatus
from content_translator.models.schemas import TranslateRequest, PipelineRequest
from content_translator.api.context import get_services
from content_translator.api.middleware import rate_limit, require_api_key
from content_translator.utils.exceptions import ValidationError
from content_translator.utils.logging import get_logger, log_buffer
from content_translator.utils.validators import validate_language_code


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _validation_error(errors):
    return jsonify({'error': 'Validation failed', 'details': errors}), 400


def _require_language(language_code: str):
    valid, error = validate_language_code(language_code)
    if not valid:
        raise ValidationError([error])


def create_translation_blueprint() -> Blueprint:
    """Create translate, sync and pipeline routes."""
    bp = Blueprint('translations', __name__, url_prefix='/api')
    logger = get_logger().api_logger

    @bp.route('/translate', methods=['POST'])
    @rate_limit
    @require_api_key
    def translate():
        """Translate a set of keys into one language and report the outcome."""
        payload = TranslateRequest.from_json(_json_body())
        errors = payload.validate()
        if errors:
            logger.warning(f"Rejected translate request: {errors}")
            return _validation_error(errors)

        result = get_services().translator().translate(
            payload.target_language,
            payload.translation_keys,
            source_language=payload.source_language
        )
        return jsonify(result.to_dict())

    @bp.route('/translate/key', methods=['POST'])
    @rate_limit
    @require_api_key
    def translate_key():
        """Translate a single key right away, optionally with extra context."""
        data = _json_body()
        translation = get_services().translator().translate_key(
            data.get('targetLanguage'),
            data.get('translationKey'),
            context=data.get('context'),
            source_language=data.get('sourceLanguage') or None
        )
        return jsonify({'success': True, **translation.to_dict()})

    @bp.route('/source/<path:translation_key>', methods=['PUT'])
    @require_api_key
    def update_source(translation_key: str):
        """Create or edit source content; translations of an edited key become stale."""
        data = _json_body()
        result = get_services().sync_engine().set_source_text(
            translation_key, data.get('text'), context=data.get('context')
        )
        return jsonify(result.to_dict()), 201 if result.created else 200

    @bp.route('/sync', methods=['POST'])
    @rate_limit
    @require_api_key
    def sync():
        """Create missing rows for every enabled language."""
        codes = _json_body().get('languageCodes')
        if codes is not None:
            if not isinstance(codes, list):
                return _validation_error(["languageCodes must be a list"])
            for code in codes:
                _require_language(code)
        result = get_services().sync_engine().sync(codes)
        return jsonify(result.to_dict())

    @bp.route('/pipeline', methods=['POST'])
    @rate_limit
    @require_api_key
    def run_pipeline():
        """Start a pipeline run in the background."""
        payload = PipelineRequest.from_json(_json_body())
        errors = payload.validate()
        if errors:
            return _validation_error(errors)

        services = get_services()
        runner = services.pipeline()
        job = services.jobs.start('pipeline', lambda cancel_event: runner.run(
            payload.action,
            payload.language_codes,
            payload.auto_approve_threshold,
            cancel_event=cancel_event
        ))
        if job is None:
            return jsonify({'error': 'A pipeline run is already in progress'}), 409

        logger.info(f"Pipeline {payload.action} started")
        return jsonify({'message': 'Pipeline started', 'action': payload.action, 'job': job.to_dict()}), 202

    @bp.route('/pipeline/status', methods=['GET'])
    def pipeline_status():
        job = get_services().jobs.get('pipeline')
        if job is None:
            return jsonify({'error': 'No pipeline run found'}), 404
        return jsonify(job.to_dict())

    @bp.route('/pipeline', methods=['DELETE'])
    @require_api_key
    def cancel_pipeline():
        if not get_services().jobs.cancel('pipeline'):
            return jsonify({'error': 'No pipeline run in progress'}), 400
        return jsonify({'message': 'Pipeline cancellation requested'})

    return bp


def create_health_check_blueprint() -> Blueprint:
    """Create corpus health and remediation routes."""
    bp = Blueprint('translation_health', __name__, url_prefix='/api/translations/health')
    logger = get_logger().api_logger

    @bp.route('', methods=['GET'])
    def health_snapshot():
        return jsonify(get_services().health().scan().to_dict())

    @bp.route('/report', methods=['GET'])
    def health_report():
        """Snapshot plus the keys behind each issue class."""
        report = get_services().health().classify()
        return jsonify({
            **report.snapshot().to_dict(),
            'broken': [{'key': key, 'language': lang} for key, lang in report.broken],
            'stale': report.stale,
            'orphaned': [{'key': key, 'language': lang} for key, lang in report.orphaned],
            'missing': report.missing,
        })

    @bp.route('/fix', methods=['POST'])
    @rate_limit
    @require_api_key
    def fix_issues():
        """Delete broken rows and re-translate stale ones."""
        report = get_services().health().fix_all()
        logger.info(f"Health fix: deleted {report.deleted_broken} broken rows")
        return jsonify(report.to_dict())

    @bp.route('/retranslate', methods=['POST'])
    @rate_limit
    @require_api_key
    def retranslate_all():
        """Re-translate the whole corpus in the background."""
        if _json_body().get('confirm') is not True:
            return _validation_error(["Full re-translation requires {\"confirm\": true}"])

        services = get_services()
        health = services.health()
        job = services.jobs.start('retranslate', lambda cancel_event: health.retranslate_all(
            confirm=True, cancel_event=cancel_event
        ))
        if job is None:
            return jsonify({'error': 'A full re-translation is already in progress'}), 409

        logger.warning("Full re-translation started")
        return jsonify({'message': 'Full re-translation started', 'job': job.to_dict()}), 202

    @bp.route('/retranslate/status', methods=['GET'])
    def retranslate_status():
        job = get_services().jobs.get('retranslate')
        if job is None:
            return jsonify({'error': 'No re-translation found'}), 404
        return jsonify(job.to_dict())

    return bp


def create_evaluation_blueprint() -> Blueprint:
    """Create evaluation progress and control routes."""
    bp = Blueprint('evaluation', __name__, url_prefix='/api/evaluation')
    logger = get_logger().api_logger

    def job_name(language_code: str) -> str:
        return f"evaluate:{language_code}"

    def start_job(language_code: str, resume: bool):
        _require_language(language_code)
        services = get_services()
        if services.jobs.is_running(job_name(language_code)):
            return jsonify({'error': f'Evaluation for {language_code} is already running'}), 409

        evaluator = services.evaluator()
        progress = evaluator.begin(language_code, resume=resume)
        services.jobs.start(
            job_name(language_code),
            lambda cancel_event: evaluator.run(progress, cancel_event)
        )
        logger.info(f"Evaluation {'resumed' if resume else 'started'} for {language_code}")
        return jsonify({
            'message': f"Evaluation {'resumed' if resume else 'started'}",
            'progress': progress.to_dict(),
            'pollIntervalSeconds': config.evaluation.poll_interval_seconds,
        }), 202

    @bp.route('', methods=['GET'])
    def list_progress():
        tracker = get_services().tracker()
        return jsonify({
            'evaluations': [p.to_dict() for p in tracker.get_all()],
            'stuck': [job.to_dict() for job in tracker.find_stuck()],
            'pollIntervalSeconds': config.evaluation.poll_interval_seconds,
        })

    @bp.route('/stuck', methods=['GET'])
    def list_stuck():
        return jsonify({'stuck': [job.to_dict() for job in get_services().tracker().find_stuck()]})

    @bp.route('/reset-stuck', methods=['POST'])
    @require_api_key
    def reset_stuck():
        services = get_services()
        reset = services.tracker().reset_stuck()
        for job in reset:
            services.jobs.cancel(job_name(job.language_code))
        return jsonify({'reset': [job.to_dict() for job in reset]})

    @bp.route('/stats', methods=['GET'])
    def stats():
        tracker = get_services().tracker()
        average = tracker.average_duration()
        by_status = {status.value: 0 for status in EvaluationStatus}
        for progress in tracker.get_all():
            by_status[progress.status.value] += 1
        return jsonify({
            'averageDurationSeconds': average.total_seconds() if average is not None else None,
            'byStatus': by_status,
        })

    @bp.route('/<language_code>', methods=['GET'])
    def get_progress(language_code: str):
        _require_language(language_code)
        progress = get_services().tracker().get(language_code)
        if progress is None:
            return jsonify({'error': f'No evaluation found for {language_code}'}), 404
        return jsonify(progress.to_dict())

    @bp.route('/<language_code>/start', methods=['POST'])
    @rate_limit
    @require_api_key
    def start(language_code: str):
        return start_job(language_code, resume=False)

    @bp.route('/<language_code>/resume', methods=['POST'])
    @rate_limit
    @require_api_key
    def resume(language_code: str):
        return start_job(language_code, resume=True)

    @bp.route('/<language_code>/pause', methods=['POST'])
    @require_api_key
    def pause(language_code: str):
        _require_language(language_code)
        services = get_services()
        progress = services.tracker().pause(language_code)
        services.jobs.cancel(job_name(language_code))
        return jsonify(progress.to_dict())

    @bp.route('/<language_code>/reset', methods=['POST'])
    @require_api_key
    def reset(language_code: str):
        _require_language(language_code)
        services = get_services()
        services.jobs.cancel(job_name(language_code))
        progress = services.tracker().reset(language_code, _json_body().get('message'))
        return jsonify(progress.to_dict())

    @bp.route('/<language_code>/key', methods=['POST'])
    @rate_limit
    @require_api_key
    def evaluate_key(language_code: str):
        """Score one translated row without touching the progress record."""
        evaluation = get_services().evaluator().evaluate_key(
            language_code, _json_body().get('translationKey')
        )
        return jsonify({'success': True, **evaluation.to_dict()})

    @bp.route('/approve', methods=['POST'])
    @require_api_key
    def approve():
        """Approve translations scoring at least the threshold."""
        threshold = _json_body().get('threshold')
        approved = get_services().evaluator().auto_approve(threshold)
        return jsonify({'approved': approved})

    return bp


def create_system_blueprint() -> Blueprint:
    """Create languages and service health routes."""
    bp = Blueprint('system', __name__, url_prefix='/api')

    @bp.route('/languages', methods=['GET'])
    def list_languages():
        languages = get_services().languages().get_all()
        return jsonify({
            'languages': [lang.to_dict() for lang in languages],
            'sourceLanguage': get_services().source_language,
        })

    @bp.route('/languages/<code>', methods=['PATCH'])
    @require_api_key
    def update_language(code: str):
        """Enable or disable a target language for sync, translation and evaluation."""
        _require_language(code)
        services = get_services()
        enabled = _json_body().get('enabled')
        if not isinstance(enabled, bool):
            return _validation_error(["enabled must be true or false"])
        if code == services.source_language:
            return _validation_error([f"{code} is the source language and cannot be toggled"])

        languages = services.languages()
        if not languages.set_enabled(code, enabled):
            return jsonify({'error': f'Unknown language: {code}'}), 404
        get_logger().api_logger.info(f"Language {code} {'enabled' if enabled else 'disabled'}")
        return jsonify(languages.get(code).to_dict())

    @bp.route('/health', methods=['GET'])
    def health_check():
        """Service liveness."""
        services = get_services()
        database_ok = services.database.fetchone("SELECT 1 AS ok") is not None
        ai_configured = services.client.is_configured()

        return jsonify({
            'status': 'healthy' if database_ok and ai_configured else 'degraded',
            'database': 'connected' if database_ok else 'disconnected',
            'aiGateway': 'configured' if ai_configured else 'not configured',
            'version': __version__,
        })

    return bp


def create_logs_blueprint() -> Blueprint:
    """Create logs routes blueprint for the console panel."""
    bp = Blueprint('logs', __name__, url_prefix='/api')

    @bp.route('/logs', methods=['GET'])
    def get_logs():
        since_id = request.args.get('since', 0, type=int)
        min_level = request.args.get('level')
        return jsonify({'logs': log_buffer.get_since(max(since_id, 0), min_level)})

    @bp.route('/logs/clear', methods=['POST'])
    @require_api_key
    def clear_logs():
        log_buffer.clear()
        return jsonify({'message': 'Logs cleared'})

    return bp
