import unittest
from datetime import datetime, timezone

from trackbridge.models.github import GitHubComment, GitHubIssue
from trackbridge.services import converter


def _issue(**overrides):
    data = {
        "id": 42,
        "number": 7,
        "title": "Bug",
        "body": "oops",
        "state": "open",
        "html_url": "https://github.com/acme/widgets/issues/7",
        "created_at": "2024-01-01T10:00:00Z",
        "updated_at": "2024-01-02T11:30:00Z",
        "user": {"login": "octocat"},
        "labels": [{"name": "bug"}, {"name": "ui"}],
        "assignees": [{"login": "alice"}],
    }
    data.update(overrides)
    return GitHubIssue.model_validate(data)


def _fields(request):
    return {f.name: (f.field_type, f.value) for f in request.custom_fields}


class CreationPayloadTests(unittest.TestCase):
    def test_open_issue(self):
        request = converter.to_creation_payload(_issue())

        self.assertEqual(request.summary, "Bug")
        self.assertTrue(request.description.startswith("oops\n\n---\n"))
        self.assertIn("**GitHub Issue:** [#7](https://github.com/acme/widgets/issues/7)", request.description)
        self.assertIn("**Reporter:** octocat", request.description)
        self.assertIn("**Created:** 2024-01-01 10:00:00 UTC", request.description)
        self.assertIn("**Labels:** bug, ui", request.description)
        self.assertIn("**Assignees:** alice", request.description)
        self.assertEqual(
            _fields(request),
            {
                "Priority": ("SingleEnumIssueCustomField", "Normal"),
                "State": ("StateIssueCustomField", "To do"),
            },
        )

    def test_closed_issue_maps_to_closed_state(self):
        request = converter.to_creation_payload(
            _issue(state="closed", closed_at="2024-01-03T00:00:00Z"), closed_state="Fixed"
        )

        self.assertEqual(_fields(request)["State"], ("StateIssueCustomField", "Fixed"))
        self.assertIn("**Closed:** 2024-01-03 00:00:00 UTC", request.description)

    def test_null_body_and_optional_fields(self):
        issue = _issue(body=None, labels=[], assignees=[], user=None, html_url="")
        description = converter.to_creation_payload(issue).description

        self.assertTrue(description.startswith("\n\n---\n**GitHub Issue:** #7"))
        self.assertNotIn("Labels", description)
        self.assertNotIn("Assignees", description)
        self.assertNotIn("Reporter", description)

    def test_api_body_carries_project(self):
        body = converter.to_creation_payload(_issue()).to_api("0-5")

        self.assertEqual(body["project"], {"id": "0-5", "$type": "Project"})
        self.assertEqual(body["summary"], "Bug")
        self.assertIn({"$type": "StateIssueCustomField", "name": "State", "value": {"name": "To do"}}, body["customFields"])


class UpdatePayloadTests(unittest.TestCase):
    def test_state_only_and_status_lines(self):
        request = converter.to_update_payload(_issue(state="closed"))

        self.assertEqual(_fields(request), {"State": ("StateIssueCustomField", "Done")})
        self.assertTrue(request.description.endswith("**GitHub State:** closed\n**GitHub Labels:** bug, ui"))

    def test_no_labels(self):
        request = converter.to_update_payload(_issue(labels=[]))
        self.assertTrue(request.description.endswith("**GitHub Labels:** none"))

    def test_same_snapshot_gives_same_payload(self):
        issue = _issue()
        self.assertEqual(converter.to_update_payload(issue), converter.to_update_payload(issue))


class CommentFormattingTests(unittest.TestCase):
    def _comment(self, **overrides):
        data = {
            "id": 1001,
            "body": "Looks good",
            "created_at": datetime(2024, 1, 2, 9, tzinfo=timezone.utc),
            "updated_at": datetime(2024, 1, 2, 9, tzinfo=timezone.utc),
            "user": {"login": "bob", "html_url": "https://github.com/bob"},
        }
        data.update(overrides)
        return GitHubComment.model_validate(data)

    def test_format_comment_with_marker(self):
        text = converter.format_comment(self._comment())

        self.assertTrue(text.startswith("Looks good\n\n---\n"))
        self.assertIn("**GitHub Comment by:** [bob](https://github.com/bob)", text)
        self.assertIn("**Created:** 2024-01-02 09:00:00 UTC", text)
        self.assertNotIn("**Updated:**", text)
        self.assertTrue(text.endswith("GitHub Comment ID: 1001"))

    def test_edited_comment_shows_update_time(self):
        text = converter.format_comment(
            self._comment(updated_at=datetime(2024, 1, 5, tzinfo=timezone.utc)), with_marker=False
        )

        self.assertIn("**Updated:** 2024-01-05 00:00:00 UTC", text)
        self.assertNotIn("GitHub Comment ID", text)

    def test_marker_roundtrip_and_missing_comments(self):
        comments = [self._comment(id=i) for i in (1, 2, 3)]
        existing = [converter.format_comment(c) for c in comments[:2]] + [None, "manual note"]

        self.assertEqual(converter.parse_comment_ids(existing), {1, 2})
        self.assertEqual([c.id for c in converter.missing_comments(comments, existing)], [3])

    def test_parse_ignores_similar_numbers(self):
        self.assertEqual(
            converter.parse_comment_ids(["github comment id: 12", "GitHub Comment ID: 123\nmore"]),
            {12, 123},
        )


if __name__ == "__main__":
    unittest.main()
