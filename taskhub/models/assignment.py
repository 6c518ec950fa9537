# taskhub/models/assignment.py
from ..extensions import db
from ..records import utcnow_iso


class AssignmentRow(db.Model):
    # Fan-out of Task.assigned_to; written at task creation, never read back
    __tablename__ = "task_assignments"

    id = db.Column(db.String(36), primary_key=True)
    task_id = db.Column(db.String(64), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    assigned_at = db.Column(db.String(32), default=utcnow_iso)
