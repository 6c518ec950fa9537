from flask import redirect, url_for, request, flash, jsonify
from flask_login import login_required, current_user
from werkzeug.utils import secure_filename

from ...errors import ValidationError
from ...services import services
from ...session import session_token, wants_json
from . import tasks_bp


def _uploads():
    out = []
    for f in request.files.getlist("files"):
        if not f or not f.filename:
            continue
        out.append((secure_filename(f.filename) or "file", f.read(), f.mimetype))
    return out


@tasks_bp.post("/add-comment")
@login_required
def add_comment():
    task_id = (request.form.get("taskId") or "").strip()
    try:
        result = services().tasks.add_comment(
            task_id, current_user.id,
            text=request.form.get("commentText"),
            keys=request.form.getlist("attachments[]") or request.form.getlist("attachments"),
            names=request.form.getlist("attachmentNames[]") or request.form.getlist("attachmentNames"),
            uploads=_uploads(),
            token=session_token(),
        )
    except ValidationError as e:
        if wants_json():
            return jsonify({"success": False, "error": e.message}), 400
        flash(e.message, "warning")
        return redirect(url_for("tasks.task_detail", task_id=task_id))

    skipped = [s.name.split(":", 1)[1] for s in result.failures if s.name.startswith("upload:")]
    if wants_json():
        c = result.value
        return jsonify({"success": True, "commentId": c.comment_id, "fileKeys": c.attachment_keys, "skipped": skipped}), 201

    if skipped:
        flash(f"Comment added, but {len(skipped)} file(s) could not be uploaded: {', '.join(skipped)}", "warning")
    else:
        flash("Comment added.", "success")
    return redirect(url_for("tasks.task_detail", task_id=task_id))
