import os


def _origins(value):
    if not value or value.strip() == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Number of concurrent two-player sessions the server can host
    SESSION_POOL_CAPACITY = int(os.environ.get('SESSION_POOL_CAPACITY', '1'))
    # Greeting pushed to every client as soon as it connects
    HELLO_MESSAGE = os.environ.get('HELLO_MESSAGE', 'Hello from pong server')
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', '*'))
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8443'))
    # Optional: serve over TLS when both are set
    SSL_CERT_FILE = os.environ.get('SSL_CERT_FILE')
    SSL_KEY_FILE = os.environ.get('SSL_KEY_FILE')
