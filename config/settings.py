"""
Configuration settings for the Practice Financial Resiliency Assessment
"""

import os


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Practice Financial Resiliency Assessment"
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Scoring
    DEFAULT_SEGMENT = os.environ.get('DEFAULT_SEGMENT', 'PP')
    DEFAULT_CATEGORY_SCORE = 50

    # Outbound webhook (submission export)
    WEBHOOK_URL = os.environ.get('WEBHOOK_URL', '')
    WEBHOOK_ENABLED = os.environ.get('WEBHOOK_ENABLED', 'false').lower() == 'true'
    WEBHOOK_TIMEOUT = float(os.environ.get('WEBHOOK_TIMEOUT', '10'))

    # Reports
    REPORT_BRAND = os.environ.get('REPORT_BRAND', 'Financial Resiliency Assessment')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "100 per minute"
    RATELIMIT_STORAGE_URL = os.environ.get('REDIS_URL', 'memory://')

    # Request bodies are small JSON answer sets
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SECRET_KEY = os.environ.get('SECRET_KEY')

    @classmethod
    def validate(cls):
        """Ensure secret key is set in production"""
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in production")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    RATELIMIT_ENABLED = False
    WEBHOOK_URL = ''
    WEBHOOK_ENABLED = False


# Config mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get config based on environment"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
