from .user import UserRow
from .task import TaskRow
from .assignment import AssignmentRow
from .comment import CommentRow
