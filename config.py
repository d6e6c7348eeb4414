import os

basedir = os.path.abspath(os.path.dirname(__file__))

def _env_flag(name):
    return os.environ.get(name, '').strip().lower() in ('1', 'true', 'yes', 'on')

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-for-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'sideline.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Custom config
    ADMIN_USER = os.environ.get('ADMIN_USER', 'admin')
    ADMIN_PASS = os.environ.get('ADMIN_PASS', 'password')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Cascade deletion engine
    STORE_PAGE_LIMIT = int(os.environ.get('STORE_PAGE_LIMIT', 1000))
    CASCADE_BATCH_SIZE = int(os.environ.get('CASCADE_BATCH_SIZE', 10))
    CASCADE_STRICT = _env_flag('CASCADE_STRICT')

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'DEBUG'
    CASCADE_STRICT = False
