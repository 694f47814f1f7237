"""In-memory tracker doubles shared by the engine tests"""

from datetime import datetime, timezone

from trackbridge.errors import TransportFailure
from trackbridge.models.github import GitHubComment, GitHubIssue
from trackbridge.models.youtrack import YouTrackComment, YouTrackTask


def ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


def make_issue(issue_id=42, number=7, **overrides) -> GitHubIssue:
    data = {
        "id": issue_id,
        "number": number,
        "title": "Bug",
        "body": "oops",
        "state": "open",
        "html_url": f"https://github.com/acme/widgets/issues/{number}",
        "created_at": ts(1),
        "updated_at": ts(1),
        "user": {"login": "octocat"},
        "labels": [{"name": "bug"}],
        "comments": 0,
    }
    data.update(overrides)
    return GitHubIssue.model_validate(data)


def make_comment(comment_id: int, body: str = "hello") -> GitHubComment:
    return GitHubComment(id=comment_id, body=body, created_at=ts(2), updated_at=ts(2))


class FakeGitHub:
    def __init__(self, issues=None, comments=None):
        self.issues = list(issues or [])
        self.comments = dict(comments or {})
        self.list_calls = []
        self.comment_calls = []
        self.fail_listing = False
        self.fail_comments = False

    def list_issues(self, since=None):
        self.list_calls.append(since)
        if self.fail_listing:
            raise TransportFailure("listing failed")
        return list(self.issues)

    def get_issue(self, number):
        return next((i for i in self.issues if i.number == number), None)

    def list_comments(self, number):
        self.comment_calls.append(number)
        if self.fail_comments:
            raise TransportFailure("comments failed")
        return list(self.comments.get(number, []))

    def check_credential(self):
        return True


class FakeYouTrack:
    def __init__(self):
        self.tasks = {}
        self.created = []
        self.updated = []
        self.comments_added = []
        self.tags_added = []
        self.fail_create = False
        self.fail_update = False
        self.fail_get = False
        self._next = 1

    def create_task(self, request):
        self.created.append(request)
        if self.fail_create:
            return None
        task = YouTrackTask(id=f"2-{self._next}", id_readable=f"PRJ-{self._next}", summary=request.summary)
        self._next += 1
        self.tasks[task.id] = task
        return task

    def update_task(self, task_id, request):
        self.updated.append((task_id, request))
        return not self.fail_update

    def get_task(self, task_id):
        if self.fail_get:
            return None
        return self.tasks.get(task_id)

    def add_comment(self, task_id, text):
        self.comments_added.append((task_id, text))
        comment = YouTrackComment(id=f"c-{len(self.comments_added)}", text=text)
        task = self.tasks.get(task_id)
        if task is not None:
            task.comments.append(comment)
        return comment

    def add_tag(self, task_id, name):
        self.tags_added.append((task_id, name))
        return True

    def check_credential(self):
        return True
