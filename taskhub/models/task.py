# taskhub/models/task.py
from ..extensions import db
from ..records import Task, utcnow_iso


class TaskRow(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text)
    created_by = db.Column(db.String(64), index=True)
    assigned_to = db.Column(db.JSON, default=list)  # list of user ids

    file_key = db.Column(db.String(512))
    file_url = db.Column(db.String(1024))
    created_at = db.Column(db.String(32), default=utcnow_iso, index=True)

    def to_record(self) -> Task:
        return Task(
            task_id=self.id,
            name=self.name,
            description=self.description or "",
            created_by=self.created_by or "",
            assigned_to=list(self.assigned_to or []),
            file_key=self.file_key,
            file_url=self.file_url,
            created_at=self.created_at,
        )

    def apply(self, t: Task) -> "TaskRow":
        self.name = t.name
        self.description = t.description
        self.created_by = t.created_by
        self.assigned_to = list(t.assigned_to)
        self.file_key = t.file_key
        self.file_url = t.file_url
        self.created_at = t.created_at
        return self
