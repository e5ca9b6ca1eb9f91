"""Settings used by the test suite.

Runs against the database configured through ``DB_ENGINE`` (SQLite by
default), executes Celery tasks eagerly and uses a fast password hasher.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

ALLOWED_HOSTS = ['*']

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    # A file database, unlike the shared in-memory one, lets threads of the
    # concurrency tests hold their own connections and queue on the write lock.
    DATABASES['default']['TEST'] = {'NAME': str(BASE_DIR / 'test_db.sqlite3')}
    DATABASES['default']['OPTIONS']['timeout'] = 60
