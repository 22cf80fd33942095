"""
API Module
==========
Flask API routes and blueprints.
"""
from content_translator.api.routes import (
    create_translation_blueprint,
    create_health_check_blueprint,
    create_evaluation_blueprint,
    create_system_blueprint,
    create_logs_blueprint
)

__all__ = [
    'create_translation_blueprint',
    'create_health_check_blueprint',
    'create_evaluation_blueprint',
    'create_system_blueprint',
    'create_logs_blueprint'
]
