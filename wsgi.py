# wsgi.py: gunicorn wsgi:app
import os

from werkzeug.middleware.proxy_fix import ProxyFix

from taskhub import create_app

app = create_app()
# a single reverse proxy (load balancer / nginx) sits in front
app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_for=1, x_host=1)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "3000")), debug=app.config.get("ENV") == "development")
