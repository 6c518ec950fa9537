# taskhub/extensions.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_wtf import CSRFProtect

# bound in create_app; the sql store backend is the only user of db
db = SQLAlchemy()
# identity comes from the session bag (see session.py), not a user table
login_manager = LoginManager()
csrf = CSRFProtect()
