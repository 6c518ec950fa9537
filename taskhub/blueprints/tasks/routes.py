# taskhub/blueprints/tasks/routes.py
from flask import render_template, redirect, url_for, request, flash, jsonify, current_app
from flask_login import login_required, current_user

from ...errors import StorageError, ValidationError
from ...records import split_ids
from ...services import services
from ...services.task_service import user_names
from ...session import session_token, json_error
from . import tasks_bp


# -----------------
# Helpers
# -----------------

def _uid() -> str:
    return current_user.id


def _assigned_from_form() -> list[str]:
    # a CSV text field and/or repeated checkbox values
    return split_ids(",".join(request.form.getlist("assignedUsers")))


def _presign_allowed() -> bool:
    cfg = current_app.config
    dev_bypass = cfg.get("ENV") == "development" or cfg.get("DEV_ALLOW_PRESIGN")
    return current_user.is_authenticated or bool(dev_bypass)


def _requester() -> str:
    return current_user.username if current_user.is_authenticated else "dev-bypass"


# -----------------
# Create Task
# -----------------

@tasks_bp.route("/create-task", methods=["GET", "POST"])
@login_required
def create_task():
    svc = services()
    token = session_token()

    if request.method == "POST":
        try:
            result = svc.tasks.create_task(
                name=request.form.get("taskName"),
                description=request.form.get("taskDescription"),
                created_by=_uid(),
                assigned_to=_assigned_from_form(),
                file_key=(request.form.get("fileKey") or "").strip() or None,
                token=token,
            )
        except ValidationError as e:
            return render_template(
                "tasks/create.html", title="Create Task",
                users=svc.tasks.list_users(token), message=e.message, form=request.form,
            ), 400

        for f in result.failures:
            current_app.logger.warning("create_task %s: %s failed: %s", result.value.task_id, f.name, f.reason)
        flash("Task created.", "success")
        return redirect(url_for("tasks.view_tasks"))

    return render_template("tasks/create.html", title="Create Task",
                           users=svc.tasks.list_users(token), message=None, form={})


# -----------------
# View Tasks
# -----------------

@tasks_bp.get("/view-tasks")
@login_required
def view_tasks():
    svc = services()
    token = session_token()
    try:
        tasks = svc.tasks.visible_tasks(_uid(), token)
        urls = svc.tasks.download_urls(tasks)
        names = user_names(svc.tasks.list_users(token))
    except Exception as e:
        current_app.logger.exception("Error rendering tasks: %s", e)
        tasks, urls, names = [], {}, {}

    return render_template("tasks/list.html", title="Your Tasks", tasks=tasks, urls=urls, names=names)


# -----------------
# Task detail / edit / update / delete
# -----------------

@tasks_bp.get("/task/<task_id>")
@login_required
def task_detail(task_id):
    svc = services()
    token = session_token()
    task = svc.tasks.get_visible_task(task_id, _uid(), token)
    thread = svc.tasks.comment_thread(task.task_id)
    names = user_names(svc.tasks.list_users(token))
    download_url = svc.tasks.download_urls([task]).get(task.task_id)
    return render_template("tasks/detail.html", title=task.name, task=task, thread=thread,
                           names=names, download_url=download_url)


@tasks_bp.get("/edit-task/<task_id>")
@login_required
def edit_task(task_id):
    svc = services()
    token = session_token()
    task = svc.tasks.get_visible_task(task_id, _uid(), token)
    return render_template("tasks/edit.html", title="Edit Task", task=task,
                           users=svc.tasks.list_users(token), message=None)


@tasks_bp.post("/update-task/<task_id>")
@login_required
def update_task(task_id):
    svc = services()
    token = session_token()
    try:
        task = svc.tasks.update_task(
            task_id, _uid(),
            name=request.form.get("taskName"),
            description=request.form.get("taskDescription"),
            assigned_to=_assigned_from_form(),
            token=token,
        )
    except ValidationError as e:
        task = svc.tasks.get_visible_task(task_id, _uid(), token)
        return render_template("tasks/edit.html", title="Edit Task", task=task,
                               users=svc.tasks.list_users(token), message=e.message), 400

    flash("Task updated.", "success")
    return redirect(url_for("tasks.task_detail", task_id=task.task_id))


@tasks_bp.delete("/delete-task/<task_id>")
@login_required
def delete_task(task_id):
    result = services().tasks.delete_task(task_id, _uid(), session_token())
    return jsonify({
        "success": True,
        "message": "Task deleted successfully",
        "warnings": [f"{s.name}: {s.reason}" for s in result.failures],
    })


# -----------------
# Users
# -----------------

@tasks_bp.get("/search-users")
def search_users():
    if not current_user.is_authenticated:
        return json_error("Unauthorized", 401)
    users = services().tasks.search_users(request.args.get("q", ""), session_token())
    return jsonify([
        {"UserID": u.user_id, "Username": u.username, "Email": u.email} for u in users
    ])


# -----------------
# Presigned URLs (browser-direct upload / download)
# -----------------

@tasks_bp.get("/presign-upload")
def presign_upload():
    if not _presign_allowed():
        return json_error("Unauthorized", 401)
    svc = services()
    if not svc.attachments.configured:
        return json_error("S3 bucket not configured", 500)

    filename = (request.args.get("filename") or "").strip()
    content_type = request.args.get("contentType") or "application/octet-stream"
    if not filename:
        return json_error("filename required", 400)

    cfg = current_app.config
    prefix = cfg["COMMENT_KEY_PREFIX"] if request.args.get("kind") == "comment" else cfg["UPLOAD_KEY_PREFIX"]
    current_app.logger.info("presign-upload: filename=%s requested by %s", filename, _requester())
    try:
        url, key = svc.attachments.signed_put_url(filename, content_type, cfg["UPLOAD_URL_TTL"], prefix)
    except (StorageError, ValueError) as e:
        current_app.logger.error("Error creating presigned URL: %s", e)
        return json_error("Could not create presigned URL", 500)
    return jsonify({"url": url, "key": key})


@tasks_bp.get("/presign-download")
def presign_download():
    if not _presign_allowed():
        return json_error("Unauthorized", 401)
    key = (request.args.get("key") or "").strip()
    if not key:
        return json_error("key required", 400)

    svc = services()
    if current_user.is_authenticated:
        # raises NotFound unless the key belongs to a task this user can see
        svc.tasks.task_for_key(key, _uid(), session_token())

    current_app.logger.info("presign-download: key=%s requested by %s", key, _requester())
    try:
        url = svc.attachments.signed_get_url(key, current_app.config["LIST_URL_TTL"])
    except StorageError as e:
        current_app.logger.error("Error creating presigned download URL: %s", e)
        return json_error("Could not create presigned download URL", 500)
    return jsonify({"url": url})
