import json
import unittest
from datetime import datetime, timedelta, timezone

import httpx

from trackbridge.errors import TransportFailure
from trackbridge.services.github_client import PER_PAGE, GitHubClient


def _raw_issue(number, **extra):
    return {"id": 1000 + number, "number": number, "title": f"Issue {number}", "state": "open", **extra}


class GitHubClientTests(unittest.TestCase):
    def _client(self, handler):
        http = httpx.Client(base_url="https://api.github.test", transport=httpx.MockTransport(handler))
        return GitHubClient("tok", "acme", "widgets", http_client=http)

    def test_list_issues_paginates_and_drops_pull_requests(self):
        requests = []
        first_page = [_raw_issue(n) for n in range(1, PER_PAGE + 1)]
        first_page[0]["pull_request"] = {"url": "https://api.github.test/pulls/1"}
        pages = {"1": first_page, "2": [_raw_issue(PER_PAGE + 1)]}

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=pages[request.url.params["page"]])

        issues = self._client(handler).list_issues()

        self.assertEqual(len(requests), 2)
        self.assertEqual(len(issues), PER_PAGE)
        self.assertEqual(issues[0].number, 2)
        params = requests[0].url.params
        self.assertEqual(requests[0].url.path, "/repos/acme/widgets/issues")
        self.assertEqual(params["state"], "all")
        self.assertEqual(params["sort"], "created")
        self.assertEqual(params["direction"], "asc")
        self.assertNotIn("since", params)

    def test_list_issues_since_is_sent_in_utc(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=[])

        since = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        self._client(handler).list_issues(since=since)

        self.assertEqual(seen["since"], "2024-01-01T10:00:00Z")

    def test_list_issues_failure_raises_transport_failure(self):
        client = self._client(lambda request: httpx.Response(502, json={"message": "bad gateway"}))

        with self.assertRaises(TransportFailure):
            client.list_issues()

    def test_get_issue(self):
        def handler(request):
            if request.url.path.endswith("/issues/7"):
                return httpx.Response(200, json=_raw_issue(7, labels=[{"name": "bug"}]))
            if request.url.path.endswith("/issues/8"):
                return httpx.Response(200, json=_raw_issue(8, pull_request={}))
            return httpx.Response(404, json={"message": "Not Found"})

        client = self._client(handler)

        self.assertEqual(client.get_issue(7).label_names, ["bug"])
        self.assertIsNone(client.get_issue(8))
        self.assertIsNone(client.get_issue(9))

    def test_list_comments(self):
        def handler(request):
            self.assertEqual(request.url.path, "/repos/acme/widgets/issues/7/comments")
            return httpx.Response(200, json=[{"id": 1, "body": "a"}, {"id": 2, "body": "b"}])

        comments = self._client(handler).list_comments(7)

        self.assertEqual([c.id for c in comments], [1, 2])

    def test_list_comments_failure(self):
        client = self._client(lambda request: httpx.Response(500))

        with self.assertRaises(TransportFailure):
            client.list_comments(7)

    def test_check_credential(self):
        self.assertTrue(self._client(lambda r: httpx.Response(200, json={"login": "me"})).check_credential())
        self.assertFalse(self._client(lambda r: httpx.Response(401)).check_credential())

    def test_default_headers(self):
        client = GitHubClient("tok", "acme", "widgets")
        try:
            self.assertEqual(client._client.headers["Authorization"], "Bearer tok")
            self.assertEqual(client._client.headers["Accept"], "application/vnd.github+json")
        finally:
            client.close()


class YouTrackClientTests(unittest.TestCase):
    def _client(self, handler):
        from trackbridge.services.youtrack_client import YouTrackClient

        http = httpx.Client(base_url="https://yt.test/api", transport=httpx.MockTransport(handler))
        return YouTrackClient("https://yt.test", "tok", "Widgets", http_client=http)

    def test_create_task_resolves_project_by_name(self):
        from trackbridge.models.github import GitHubIssue
        from trackbridge.services.converter import to_creation_payload

        posted = []

        def handler(request):
            if request.url.path == "/api/admin/projects":
                return httpx.Response(200, json=[{"id": "0-1", "name": "Other", "shortName": "OT"}, {"id": "0-5", "name": "Widgets", "shortName": "WID"}])
            if request.url.path == "/api/issues" and request.method == "POST":
                posted.append(json.loads(request.content))
                return httpx.Response(200, json={"id": "2-9", "idReadable": "WID-9", "summary": "Bug"})
            return httpx.Response(404)

        client = self._client(handler)
        issue = GitHubIssue(id=1, number=1, title="Bug")

        task = client.create_task(to_creation_payload(issue))
        client.create_task(to_creation_payload(issue))

        self.assertEqual(task.id, "2-9")
        self.assertEqual(task.id_readable, "WID-9")
        self.assertEqual(posted[0]["project"], {"id": "0-5", "$type": "Project"})
        self.assertEqual(posted[0]["summary"], "Bug")

    def test_create_task_unreadable_response_returns_none(self):
        from trackbridge.models.youtrack import TaskCreationRequest

        def handler(request):
            if request.url.path == "/api/admin/projects":
                return httpx.Response(200, json=[{"id": "0-5", "name": "Widgets"}])
            return httpx.Response(200, content=b"<html>gateway</html>")

        client = self._client(handler)

        self.assertIsNone(client.create_task(TaskCreationRequest(summary="x", description="y")))

    def test_create_task_unknown_project_returns_none(self):
        from trackbridge.models.youtrack import TaskCreationRequest

        client = self._client(lambda r: httpx.Response(200, json=[{"id": "0-1", "name": "Other"}]))

        self.assertIsNone(client.create_task(TaskCreationRequest(summary="x", description="y")))

    def test_update_task_reports_failure(self):
        from trackbridge.models.youtrack import TaskUpdateRequest

        request = TaskUpdateRequest(summary="x", description="y")
        ok = self._client(lambda r: httpx.Response(200, json={"id": "2-1"}))
        gone = self._client(lambda r: httpx.Response(404))

        self.assertTrue(ok.update_task("2-1", request))
        self.assertFalse(gone.update_task("2-1", request))

    def test_get_task_with_comments(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"id": "2-1", "idReadable": "WID-1", "comments": [{"id": "4-1", "text": "GitHub Comment ID: 5"}]},
            )

        task = self._client(handler).get_task("2-1")

        self.assertEqual([c.text for c in task.comments], ["GitHub Comment ID: 5"])

    def test_add_comment(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "4-2", "text": bodies[-1]["text"]})

        comment = self._client(handler).add_comment("2-1", "hello")

        self.assertEqual(comment.id, "4-2")
        self.assertEqual(bodies[0]["$type"], "IssueComment")
        self.assertIsNone(self._client(lambda r: httpx.Response(500)).add_comment("2-1", "hello"))

    def test_add_tag_creates_missing_tag_once(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            if request.url.path == "/api/tags" and request.method == "GET":
                return httpx.Response(200, json=[{"id": "6-1", "name": "bugfix"}])
            if request.url.path == "/api/tags" and request.method == "POST":
                return httpx.Response(200, json={"id": "6-2", "name": "bug"})
            return httpx.Response(200, json={"id": "6-2"})

        client = self._client(handler)

        self.assertTrue(client.add_tag("2-1", "bug"))
        self.assertTrue(client.add_tag("2-2", "bug"))
        self.assertEqual(calls.count(("POST", "/api/tags")), 1)
        self.assertEqual(calls.count(("GET", "/api/tags")), 1)
        self.assertIn(("POST", "/api/issues/2-2/tags"), calls)


if __name__ == "__main__":
    unittest.main()
