# tests/test_records.py

from __future__ import annotations

import re

from taskhub.records import Comment, OperationResult, Task, User, split_ids, utcnow_iso


def test_timestamps_are_iso_millis_utc() -> None:
    ts = utcnow_iso()
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", ts)


def test_split_ids_accepts_csv_and_lists() -> None:
    assert split_ids("u1, u2,,u3 ") == ["u1", "u2", "u3"]
    assert split_ids(["u1", "", None, " u2"]) == ["u1", "u2"]
    assert split_ids(None) == []


def test_visibility_is_creator_or_assignee() -> None:
    t = Task(task_id="t", name="n", created_by="u1", assigned_to=["u2"])
    assert t.is_visible_to("u1")
    assert t.is_visible_to("u2")
    assert not t.is_visible_to("u3")
    assert not t.is_visible_to("")


def test_remote_task_payloads_are_normalised() -> None:
    a = Task.from_remote({"TaskID": "t1", "Name": "A", "CreatedBy": "u1", "AssignedTo": ["u2"]})
    b = Task.from_remote({"taskId": "t2", "taskName": "B", "createdBy": "u1", "assignedUsers": "u2,u3"})
    c = Task.from_remote({"id": 7, "name": "C"})

    assert (a.task_id, a.name, a.assigned_to) == ("t1", "A", ["u2"])
    assert (b.task_id, b.name, b.assigned_to) == ("t2", "B", ["u2", "u3"])
    assert (c.task_id, c.name, c.assigned_to) == ("7", "C", [])


def test_remote_user_payload() -> None:
    u = User.from_remote({"UserID": "u1", "Username": "alice", "Email": "a@acme.io"})
    assert u.to_public()["UserID"] == "u1"
    assert u.role == "User"
    assert "Password" not in u.to_public()


def test_comment_attachment_names_fall_back_to_key_basename() -> None:
    c = Comment(comment_id="c", task_id="t", user_id="u",
                attachment_keys=["comments/1_a.pdf", "comments/2_b.png"],
                attachment_names=["Report.pdf"])
    assert c.attachments() == [("comments/1_a.pdf", "Report.pdf"), ("comments/2_b.png", "2_b.png")]


def test_operation_result_collects_failures() -> None:
    r = OperationResult("op")
    r.record("one")
    r.record("two", ok=False, reason="boom")
    assert not r.ok
    assert [s.name for s in r.failures] == ["two"]
