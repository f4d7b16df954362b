"""
Tests for ProjectAggregator

Tests multi-source aggregation with partial failures, project listing and
the single-purpose views served by the API.
"""

from unittest.mock import MagicMock

import httpx
import pytest

from jira_pulse.async_http_client import MalformedResponseError, NotFoundError, UpstreamError
from jira_pulse.collectors.project_aggregator import FetchOutcome, ProjectAggregator
from jira_pulse.domain import Project
from jira_pulse.security import ValidationError

VERSIONS_PATH = "/rest/api/3/project/CB/versions"
USERS_PATH = "/rest/api/3/user/assignable/search"
PROJECT_PATH = "/rest/api/3/project/CB"
PROJECTS_PATH = "/rest/api/3/project/search"


@pytest.fixture
def stub_cb_project(fake_jira, issue_payload, version_payload, project_payload):
    """Script a healthy CB project on the fake upstream"""
    fake_jira.add_search(
        'project = "CB"',
        (
            200,
            {
                "issues": [
                    issue_payload("CB-1", status="Done", fix_versions=["10001"]),
                    issue_payload("CB-2", status="Done", fix_versions=["10001"]),
                    issue_payload("CB-3", status="To Do", fix_versions=["10002"]),
                    issue_payload("CB-4", status="Blocked"),
                ]
            },
        ),
    )
    fake_jira.add(
        "GET",
        VERSIONS_PATH,
        (
            200,
            [
                version_payload("10001", "v1", released=True, release_date="2024-01-01"),
                version_payload("10002", "v2", release_date="2024-03-01"),
            ],
        ),
    )
    fake_jira.add("GET", USERS_PATH, (200, [{"accountId": "acc-1"}, {"accountId": "acc-2"}]))
    fake_jira.add("GET", PROJECT_PATH, (200, project_payload("CB", name="Checkout")))


class TestFetchOutcome:
    """Tests for FetchOutcome"""

    def test_value(self):
        """Test a plain result is a successful outcome"""
        outcome = FetchOutcome.from_result("versions", [1])

        assert outcome.ok
        assert outcome.value_or([], MagicMock(), {}) == [1]

    def test_error_returns_default_and_logs(self):
        """Test an exception result is replaced by the default"""
        logger = MagicMock()
        outcome = FetchOutcome.from_result("versions", UpstreamError("Jira API Error: 503"))

        assert not outcome.ok
        assert outcome.value_or([], logger, {"project_key": "CB"}) == []
        assert "Versions fetch failed" in logger.warning.call_args.args[0]

    def test_base_exception_is_reraised(self):
        """Test cancellation is not treated as a sub-fetch failure"""
        with pytest.raises(KeyboardInterrupt):
            FetchOutcome.from_result("issues", KeyboardInterrupt())


class TestAggregate:
    """Tests for ProjectAggregator.aggregate()"""

    @pytest.mark.asyncio
    async def test_full_record(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test every sub-fetch is merged into the record"""
        async with make_http_client() as http:
            record = await ProjectAggregator(make_jira_client(http)).aggregate("CB")

        assert record.project.name == "Checkout"
        assert record.task_counts.total == 4
        assert record.task_counts.counts == {"Done": 2, "To Do": 1, "Blocked": 1}
        assert sum(record.task_counts.counts.values()) == record.task_counts.total
        assert [v.name for v in record.versions] == ["v1", "v2"]
        assert record.members == 2
        assert record.degraded == []

    @pytest.mark.asyncio
    async def test_search_body(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test the aggregation search is bounded and projected"""
        async with make_http_client() as http:
            await ProjectAggregator(make_jira_client(http), max_results=500).aggregate("CB")

        body = fake_jira.search_bodies()[0]
        assert body["jql"] == 'project = "CB"'
        assert body["maxResults"] == 500
        assert "fixVersions" in body["fields"]

    @pytest.mark.asyncio
    async def test_versions_failure_degrades_record(
        self, fake_jira, make_http_client, make_jira_client, stub_cb_project
    ):
        """Test a failing version list yields versions=[] and intact task counts"""
        fake_jira.add("GET", VERSIONS_PATH, (503, {}))

        async with make_http_client() as http:
            record = await ProjectAggregator(make_jira_client(http)).aggregate("CB")

        assert record.versions == []
        assert record.task_counts.total == 4
        assert record.degraded == ["versions"]
        assert len(fake_jira.requests_to(VERSIONS_PATH)) == 4

    @pytest.mark.asyncio
    async def test_every_sub_fetch_failing(self, fake_jira, make_http_client, make_jira_client):
        """Test total upstream outage still produces a record of defaults"""
        fake_jira.add("GET", PROJECT_PATH, httpx.ConnectError("down"))

        async with make_http_client() as http:
            record = await ProjectAggregator(make_jira_client(http)).aggregate("CB")

        assert record.project == Project.placeholder("CB")
        assert record.task_counts.total == 0
        assert record.versions == []
        assert record.members == 0
        assert sorted(record.degraded) == ["issues", "project", "users", "versions"]

    @pytest.mark.asyncio
    async def test_known_project_skips_metadata_fetch(
        self, fake_jira, make_http_client, make_jira_client, stub_cb_project
    ):
        """Test passing project metadata avoids the project call"""
        project = Project(id="1", key="CB", name="From listing")

        async with make_http_client() as http:
            record = await ProjectAggregator(make_jira_client(http)).aggregate("CB", project=project)

        assert record.project is project
        assert fake_jira.requests_to(PROJECT_PATH) == []

    @pytest.mark.asyncio
    async def test_invalid_key_makes_no_call(self, fake_jira, make_http_client, make_jira_client):
        """Test a malformed key fails before any network request"""
        async with make_http_client() as http:
            with pytest.raises(ValidationError):
                await ProjectAggregator(make_jira_client(http)).aggregate("BAD KEY")

        assert fake_jira.requests == []

    @pytest.mark.asyncio
    async def test_malformed_search_payload_degrades(
        self, fake_jira, make_http_client, make_jira_client, stub_cb_project
    ):
        """Test a structurally invalid search response only drops the issues"""
        fake_jira.searches.clear()
        fake_jira.add_search('project = "CB"', (200, {"issues": "not-a-list"}))

        async with make_http_client() as http:
            record = await ProjectAggregator(make_jira_client(http)).aggregate("CB")

        assert record.task_counts.total == 0
        assert record.degraded == ["issues"]
        assert len(record.versions) == 2


class TestListProjects:
    """Tests for project listing"""

    @pytest.mark.asyncio
    async def test_follows_pages(self, fake_jira, make_http_client, make_jira_client, project_payload):
        """Test pages are followed until isLast"""
        fake_jira.add(
            "GET",
            PROJECTS_PATH,
            (200, {"values": [project_payload("CB"), project_payload("OPS")], "isLast": False}),
            (200, {"values": [project_payload("WEB")], "isLast": True}),
        )

        async with make_http_client() as http:
            projects = await ProjectAggregator(make_jira_client(http)).list_projects()

        assert [p.key for p in projects] == ["CB", "OPS", "WEB"]
        assert fake_jira.requests[1].url.params["startAt"] == "2"

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, fake_jira, make_http_client, make_jira_client):
        """Test a failed listing raises UpstreamError"""
        fake_jira.add("GET", PROJECTS_PATH, (500, {}))

        async with make_http_client() as http:
            with pytest.raises(UpstreamError):
                await ProjectAggregator(make_jira_client(http)).list_projects()

    @pytest.mark.asyncio
    async def test_bounded_pages(self, fake_jira, make_http_client, make_jira_client, project_payload):
        """Test an upstream that never reports isLast is cut off"""
        fake_jira.add("GET", PROJECTS_PATH, (200, {"values": [project_payload("CB")], "isLast": False}))
        logger = MagicMock()

        async with make_http_client() as http:
            projects = await ProjectAggregator(make_jira_client(http), logger=logger).list_projects()

        assert len(projects) == 20
        assert logger.warning.called

    @pytest.mark.asyncio
    async def test_with_counts(self, fake_jira, make_http_client, make_jira_client, project_payload, issue_payload):
        """Test counts per project; a failed count degrades to zero for that project"""
        fake_jira.add(
            "GET", PROJECTS_PATH, (200, {"values": [project_payload("CB"), project_payload("OPS")], "isLast": True})
        )
        fake_jira.add_search('project = "CB"', (200, {"issues": [issue_payload("CB-1", status="Done")]}))
        fake_jira.add_search('project = "OPS"', (500, {}))

        async with make_http_client() as http:
            combined = await ProjectAggregator(make_jira_client(http)).list_projects_with_counts()

        assert [(p.key, c.total) for p, c in combined] == [("CB", 1), ("OPS", 0)]


class TestViews:
    """Tests for single-purpose views"""

    @pytest.mark.asyncio
    async def test_get_tasks(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test task counts and issues with the minimal projection"""
        async with make_http_client() as http:
            counts, issues = await ProjectAggregator(make_jira_client(http)).get_tasks("CB")

        assert counts.total == 4
        assert len(issues) == 4
        assert fake_jira.search_bodies()[0]["fields"] == ["status", "summary"]

    @pytest.mark.asyncio
    async def test_get_task_stats(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test the done/blocked/to-do breakdown"""
        async with make_http_client() as http:
            stats = await ProjectAggregator(make_jira_client(http)).get_task_stats("CB")

        assert stats.done == 2
        assert stats.blocked == 1
        assert stats.todo == 1
        assert stats.progress == 50

    @pytest.mark.asyncio
    async def test_get_versions_computes_counts(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test issueCounts are filled per version"""
        async with make_http_client() as http:
            versions = await ProjectAggregator(make_jira_client(http)).get_versions("CB")

        assert versions[0].issue_counts.issues_fixed_count == 2
        assert versions[0].issue_counts.total_issues == 2
        assert versions[1].issue_counts.total_issues == 1

    @pytest.mark.asyncio
    async def test_get_version_detail(self, fake_jira, make_http_client, make_jira_client, version_payload, issue_payload):
        """Test version metadata and its issues"""
        fake_jira.add("GET", "/rest/api/3/version/10001", (200, version_payload("10001", "v1", released=True)))
        fake_jira.add_search("fixVersion = 10001", (200, {"issues": [issue_payload("CB-1", status="Done")]}))

        async with make_http_client() as http:
            version, issues = await ProjectAggregator(make_jira_client(http)).get_version_detail("CB", "10001")

        assert version.status == "Released"
        assert [i.key for i in issues] == ["CB-1"]
        assert fake_jira.search_bodies()[0]["jql"] == 'project = "CB" AND fixVersion = 10001'

    @pytest.mark.asyncio
    async def test_get_version_detail_counts_its_issues(
        self, fake_jira, make_http_client, make_jira_client, version_payload, issue_payload
    ):
        """Test the version's issueCounts agree with the issues returned alongside it"""
        fake_jira.add("GET", "/rest/api/3/version/10002", (200, version_payload("10002", "v2")))
        fake_jira.add_search(
            "fixVersion = 10002",
            (200, {"issues": [issue_payload("CB-1", status="Done"), issue_payload("CB-2", status="To Do")]}),
        )

        async with make_http_client() as http:
            version, issues = await ProjectAggregator(make_jira_client(http)).get_version_detail("CB", "10002")

        assert len(issues) == 2
        assert version.issue_counts.issues_fixed_count == 1
        assert version.issue_counts.total_issues == 2

    @pytest.mark.asyncio
    async def test_get_version_detail_not_found(self, fake_jira, make_http_client, make_jira_client):
        """Test a missing version raises NotFoundError"""
        fake_jira.add_search("fixVersion = 99", (200, {"issues": []}))

        async with make_http_client() as http:
            with pytest.raises(NotFoundError):
                await ProjectAggregator(make_jira_client(http)).get_version_detail("CB", "99")

    @pytest.mark.asyncio
    async def test_malformed_search_payload_propagates(self, fake_jira, make_http_client, make_jira_client):
        """Test views surface a badly shaped reply as an upstream failure"""
        fake_jira.add_search('project = "CB"', (200, {"issues": "not-a-list"}))

        async with make_http_client() as http:
            with pytest.raises(MalformedResponseError, match="Malformed issue list") as exc_info:
                await ProjectAggregator(make_jira_client(http)).get_tasks("CB")

        assert isinstance(exc_info.value, UpstreamError)
        assert not exc_info.value.is_not_found

    @pytest.mark.asyncio
    async def test_get_all_issues(self, fake_jira, make_http_client, make_jira_client, issue_payload):
        """Test only tasks, stories and epics are requested"""
        fake_jira.add_search("issuetype IN", (200, {"issues": [issue_payload("CB-1", issue_type="Story")]}))

        async with make_http_client() as http:
            issues = await ProjectAggregator(make_jira_client(http)).get_all_issues("CB")

        assert issues[0].type == "Story"
        assert fake_jira.search_bodies()[0]["jql"] == 'project = "CB" AND issuetype IN (Task, Story, Epic)'

    @pytest.mark.asyncio
    async def test_get_users(self, fake_jira, make_http_client, make_jira_client, stub_cb_project):
        """Test assignable users are normalized"""
        async with make_http_client() as http:
            users = await ProjectAggregator(make_jira_client(http)).get_users("CB")

        assert [u.account_id for u in users] == ["acc-1", "acc-2"]


class TestIssueDetail:
    """Tests for ProjectAggregator.get_issue_detail()"""

    @pytest.mark.asyncio
    async def test_plain_issue_skips_child_search(self, fake_jira, make_http_client, make_jira_client, issue_payload):
        """Test non-epics never search for children"""
        fake_jira.add("GET", "/rest/api/3/issue/CB-2", (200, issue_payload("CB-2", issue_type="Story")))

        async with make_http_client() as http:
            detail = await ProjectAggregator(make_jira_client(http)).get_issue_detail("CB", "CB-2")

        assert detail.key == "CB-2"
        assert fake_jira.search_bodies() == []

    @pytest.mark.asyncio
    async def test_epic_children_are_appended(self, fake_jira, make_http_client, make_jira_client, issue_payload):
        """Test epics list subtasks followed by epic children"""
        fake_jira.add(
            "GET",
            "/rest/api/3/issue/CB-1",
            (200, issue_payload("CB-1", issue_type="Epic", subtasks=[{"key": "CB-5", "fields": {}}])),
        )
        fake_jira.add_search('"Epic Link" = CB-1', (200, {"issues": [issue_payload("CB-6", issue_type="Story")]}))

        async with make_http_client() as http:
            detail = await ProjectAggregator(make_jira_client(http)).get_issue_detail("CB", "CB-1")

        assert [c.key for c in detail.children] == ["CB-5", "CB-6"]

    @pytest.mark.asyncio
    async def test_epic_child_search_failure_keeps_subtasks(
        self, fake_jira, make_http_client, make_jira_client, issue_payload
    ):
        """Test a failed child search degrades to subtasks only"""
        fake_jira.add(
            "GET",
            "/rest/api/3/issue/CB-1",
            (200, issue_payload("CB-1", issue_type="Epic", subtasks=[{"key": "CB-5", "fields": {}}])),
        )
        fake_jira.add_search('"Epic Link" = CB-1', (500, {}))

        async with make_http_client() as http:
            detail = await ProjectAggregator(make_jira_client(http)).get_issue_detail("CB", "CB-1")

        assert [c.key for c in detail.children] == ["CB-5"]

    @pytest.mark.asyncio
    async def test_issue_key_with_space(self, fake_jira, make_http_client, make_jira_client):
        """Test whitespace in the key is rejected before any call"""
        async with make_http_client() as http:
            with pytest.raises(ValidationError, match="contains spaces"):
                await ProjectAggregator(make_jira_client(http)).get_issue_detail("CB", "CB 1")

        assert fake_jira.requests == []

    @pytest.mark.asyncio
    async def test_missing_issue(self, fake_jira, make_http_client, make_jira_client):
        """Test an unknown issue raises NotFoundError"""
        async with make_http_client() as http:
            with pytest.raises(NotFoundError):
                await ProjectAggregator(make_jira_client(http)).get_issue_detail("CB", "CB-404")
