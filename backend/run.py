from pong_server import create_app, socketio

app = create_app()

if __name__ == '__main__':
    options = {'host': app.config['HOST'], 'port': app.config['PORT']}
    if app.config.get('SSL_CERT_FILE') and app.config.get('SSL_KEY_FILE'):
        options['ssl_context'] = (app.config['SSL_CERT_FILE'], app.config['SSL_KEY_FILE'])
    app.logger.info(f"[startup] listening on {options['host']}:{options['port']} "
                    f"tls={'ssl_context' in options} slots={app.config['SESSION_POOL_CAPACITY']}")
    socketio.run(app, allow_unsafe_werkzeug=True, **options)
