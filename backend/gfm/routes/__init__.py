from .auth import auth_bp
from .uploads import upload_bp
from .users import users_bp
from .batches import batches_bp
from .students import students_bp
from .assignments import assignments_bp
from .attendance import attendance_bp
from .followups import followups_bp
from .reports import reports_bp
from .base_route import base_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(batches_bp, url_prefix='/batches')
    app.register_blueprint(students_bp, url_prefix='/students')
    app.register_blueprint(assignments_bp, url_prefix='/assignments')
    app.register_blueprint(attendance_bp, url_prefix='/attendance')
    app.register_blueprint(followups_bp, url_prefix='/followups')
    app.register_blueprint(reports_bp, url_prefix='/reports')
    app.register_blueprint(upload_bp, url_prefix='/uploads')
