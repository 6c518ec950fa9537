from flask import render_template, redirect, request, current_app
from flask_login import login_required, current_user

from ...errors import StorageError
from ...services import services
from ...services.task_service import user_names
from ...session import session_token, json_error
from . import tasks_bp


def _redirect_signed(task, key: str):
    tasks = services().tasks
    try:
        url = tasks.signed_download(key, fallback=tasks.stored_url(task, key))
    except StorageError as e:
        current_app.logger.error("Download signing failed for %s: %s", key, e)
        return json_error("Could not create download link", 500)
    return redirect(url)


@tasks_bp.get("/task/<task_id>/files")
@login_required
def task_files(task_id):
    svc = services()
    token = session_token()
    task = svc.tasks.get_visible_task(task_id, current_user.id, token)
    files = svc.tasks.task_files(task)
    names = user_names(svc.tasks.list_users(token))
    return render_template("tasks/files.html", title=f"Files · {task.name}", task=task, files=files, names=names)


@tasks_bp.get("/download/<path:file_key>")
@login_required
def download(file_key):
    task = services().tasks.task_for_key(file_key, current_user.id, session_token())
    return _redirect_signed(task, file_key)


@tasks_bp.get("/download-file/<task_id>")
@login_required
def download_file(task_id):
    svc = services()
    task = svc.tasks.get_visible_task(task_id, current_user.id, session_token())
    key = svc.tasks.resolve_file_key(
        task,
        comment_id=(request.args.get("commentId") or "").strip() or None,
        file_index=request.args.get("fileIndex", 0, type=int),
    )
    return _redirect_signed(task, key)
