# taskhub/models/comment.py
from ..extensions import db
from ..records import Comment, utcnow_iso


class CommentRow(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.String(36), primary_key=True)
    task_id = db.Column(db.String(64), nullable=False, index=True)
    user_id = db.Column(db.String(64), index=True)
    text = db.Column(db.Text)

    # parallel lists: object keys and the original file names
    file_keys = db.Column(db.JSON, default=list)
    file_names = db.Column(db.JSON, default=list)

    created_at = db.Column(db.String(32), default=utcnow_iso, index=True)

    def to_record(self) -> Comment:
        return Comment(
            comment_id=self.id,
            task_id=self.task_id,
            user_id=self.user_id or "",
            text=self.text or "",
            attachment_keys=list(self.file_keys or []),
            attachment_names=list(self.file_names or []),
            created_at=self.created_at,
        )

    @classmethod
    def from_record(cls, c: Comment) -> "CommentRow":
        return cls(
            id=c.comment_id,
            task_id=c.task_id,
            user_id=c.user_id,
            text=c.text,
            file_keys=list(c.attachment_keys),
            file_names=list(c.attachment_names),
            created_at=c.created_at,
        )
