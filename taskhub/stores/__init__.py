# taskhub/stores/__init__.py
from .base import CommentStore, Stores, TaskStore, UserStore


def build_stores(config) -> Stores:
    """Pick the backend named by STORE_BACKEND. Only called from create_app."""
    backend = (config.get("STORE_BACKEND") or "sql").lower()

    if backend == "dynamodb":
        from .dynamo import DynamoCommentStore, DynamoTaskStore, DynamoUserStore, dynamo_resource
        ddb = dynamo_resource(config.get("AWS_REGION"))
        return Stores(
            users=DynamoUserStore(ddb.Table(config["USERS_TABLE"])),
            tasks=DynamoTaskStore(
                ddb.Table(config["TASKS_TABLE"]),
                ddb.Table(config["TASK_ASSIGNMENTS_TABLE"]),
            ),
            comments=DynamoCommentStore(ddb.Table(config["COMMENTS_TABLE"])),
        )

    if backend == "sql":
        from .sql import SqlCommentStore, SqlTaskStore, SqlUserStore
        return Stores(users=SqlUserStore(), tasks=SqlTaskStore(), comments=SqlCommentStore())

    if backend == "memory":
        from .memory import MemoryCommentStore, MemoryTaskStore, MemoryUserStore
        return Stores(users=MemoryUserStore(), tasks=MemoryTaskStore(), comments=MemoryCommentStore())

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


__all__ = ["build_stores", "Stores", "UserStore", "TaskStore", "CommentStore"]
