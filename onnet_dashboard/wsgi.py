# onnet_dashboard/wsgi.py
# WSGI entry point for production servers: onnet_dashboard.wsgi:app
import os

from onnet_dashboard import create_app

app = create_app()


def main():
    """Local development server, installed as the `onnet-dashboard` command"""
    port = int(os.environ.get('PORT', 5000))
    app.run(
        debug=app.config.get('DEBUG', False),
        host='0.0.0.0',
        port=port
    )


if __name__ == '__main__':
    main()
