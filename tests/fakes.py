# tests/fakes.py

from __future__ import annotations

from botocore.exceptions import ClientError

from taskhub.errors import RemoteAPIError


def client_error(code: str = "AccessDenied", op: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class FakeS3Client:
    """
    Stand-in for a boto3 S3 client.

    - Signs deterministically: https://signed.test/<key>?op=<op>&ttl=<ttl>
    - Keys in ``failing_keys`` raise ClientError when signed
    - Keys in ``undeletable`` come back in DeleteObjects ``Errors``
    - Uploads whose file name is in ``failing_uploads`` raise ClientError
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.signed: list[tuple[str, str, int]] = []
        self.delete_batches: list[list[str]] = []
        self.failing_keys: set[str] = set()
        self.undeletable: set[str] = set()
        self.failing_uploads: set[str] = set()

    def generate_presigned_url(self, op, Params, ExpiresIn):
        key = Params["Key"]
        if key in self.failing_keys:
            raise client_error(op="GeneratePresignedUrl")
        self.signed.append((op, key, ExpiresIn))
        return f"https://signed.test/{key}?op={op}&ttl={ExpiresIn}"

    def put_object(self, Bucket, Key, Body, ContentType):
        if any(Key.endswith("_" + name) for name in self.failing_uploads):
            raise client_error(op="PutObject")
        self.objects[Key] = Body

    def delete_objects(self, Bucket, Delete):
        keys = [o["Key"] for o in Delete["Objects"]]
        self.delete_batches.append(keys)
        errors = [{"Key": k, "Code": "AccessDenied", "Message": "denied"} for k in keys if k in self.undeletable]
        for k in keys:
            if k not in self.undeletable:
                self.objects.pop(k, None)
        return {"Deleted": [{"Key": k} for k in keys if k not in self.undeletable], "Errors": errors}


class FakeRemoteAPI:
    """
    Stand-in for RemoteTaskAPI.

    Set ``fail`` to an error kind ("timeout", "connection_refused", ...) to make
    every call raise RemoteAPIError.
    """

    def __init__(self, tasks=None, users=None) -> None:
        self.tasks = list(tasks or [])
        self.users = list(users or [])
        self.fail: str | None = None
        self.calls: list[tuple[str, object]] = []
        self.login_response: dict = {}
        self.register_response: dict = {"success": True}

    def _call(self, name, arg=None):
        self.calls.append((name, arg))
        if self.fail:
            raise RemoteAPIError(self.fail, f"{name} failed")

    def register(self, username, email, password):
        self._call("register", email)
        return self.register_response

    def login(self, email, password):
        self._call("login", email)
        return self.login_response

    def list_tasks(self, token):
        self._call("list_tasks", token)
        return list(self.tasks)

    def create_task(self, task, token):
        self._call("create_task", task.task_id)
        return {"success": True}

    def update_task(self, task, token):
        self._call("update_task", task.task_id)
        return {"success": True}

    def delete_task(self, task_id, token):
        self._call("delete_task", task_id)
        return {"success": True}

    def list_users(self, token):
        self._call("list_users", token)
        return list(self.users)

    def search_users(self, q, token):
        self._call("search_users", q)
        return [u for u in self.users if q in (u.username + u.email).lower()]
