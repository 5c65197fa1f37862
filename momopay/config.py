import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value):
    return tuple(item.strip().upper() for item in value.split(',') if item.strip())


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')

    # MTN MoMo Collection product
    MOMO_BASE_URL = os.getenv('MOMO_BASE_URL', 'https://sandbox.momodeveloper.mtn.com')
    MOMO_TARGET_ENVIRONMENT = os.getenv('MOMO_TARGET_ENVIRONMENT')
    MOMO_SUBSCRIPTION_KEY = os.getenv('MOMO_SUBSCRIPTION_KEY')
    MOMO_API_USER = os.getenv('MOMO_API_USER')
    MOMO_API_KEY = os.getenv('MOMO_API_KEY')
    MOMO_CALLBACK_HOST = os.getenv('MOMO_CALLBACK_HOST')
    MOMO_CALLBACK_URL = os.getenv('MOMO_CALLBACK_URL')

    MOMO_DEFAULT_COUNTRY = os.getenv('MOMO_DEFAULT_COUNTRY', 'GH')
    MOMO_SUPPORTED_CURRENCIES = _csv(os.getenv('MOMO_SUPPORTED_CURRENCIES', 'GHS,NGN,EUR'))

    # Seconds before expiry at which a cached access token stops being served
    MOMO_TOKEN_SAFETY_MARGIN = float(os.getenv('MOMO_TOKEN_SAFETY_MARGIN', '60'))
    MOMO_HTTP_TIMEOUT = float(os.getenv('MOMO_HTTP_TIMEOUT', '30'))

    # Status polling
    MOMO_POLL_INTERVAL = float(os.getenv('MOMO_POLL_INTERVAL', '5'))
    MOMO_POLL_TIMEOUT = float(os.getenv('MOMO_POLL_TIMEOUT', '120'))
    MOMO_POLL_MAX_TRANSIENT_FAILURES = int(os.getenv('MOMO_POLL_MAX_TRANSIENT_FAILURES', '3'))
    MOMO_POLL_BACKOFF_MULTIPLIER = float(os.getenv('MOMO_POLL_BACKOFF_MULTIPLIER', '1.0'))
    MOMO_POLL_MAX_INTERVAL = float(os.getenv('MOMO_POLL_MAX_INTERVAL', '30'))

    CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    MOMO_BASE_URL = 'https://sandbox.momodeveloper.mtn.com'
    MOMO_TARGET_ENVIRONMENT = None
    MOMO_SUBSCRIPTION_KEY = 'test-subscription-key'
    MOMO_API_USER = 'test-api-user'
    MOMO_API_KEY = 'test-api-key'
    MOMO_CALLBACK_HOST = 'example.com'
    MOMO_CALLBACK_URL = 'https://example.com/momo/callback'
    MOMO_SUPPORTED_CURRENCIES = ('GHS', 'NGN', 'EUR')
    MOMO_POLL_INTERVAL = 0.01
    MOMO_POLL_TIMEOUT = 1.0
    CELERY_TASK_ALWAYS_EAGER = True


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
