"""보고서 스케줄러 제어 테스트 (APScheduler는 paused 상태로 실행해 작업이 실제로 돌지 않음)."""

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from reportbot.agents.report_agent import ExecutionResult
from reportbot.core.exceptions import ConfigurationError
from reportbot.core.scheduler import ReportScheduler
from tests.conftest import TZ, local


class RecordingAgent:
    """execute 호출만 기록하는 Agent."""

    def __init__(self, now):
        self.now = now
        self.calls = []

    def execute(self, snapshot, execution_type):
        self.calls.append((snapshot.id, execution_type))
        return ExecutionResult(
            config_id=snapshot.id,
            config_name=snapshot.name,
            report_type=snapshot.report_type,
            execution_type=execution_type,
            last_execution_at=self.now,
        )


@pytest.fixture
def aps():
    scheduler = BackgroundScheduler(timezone=TZ)
    scheduler.start(paused=True)
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.fixture
def agent(now) -> RecordingAgent:
    return RecordingAgent(now)


@pytest.fixture
def report_scheduler(aps, session_factory, agent, now) -> ReportScheduler:
    return ReportScheduler(aps, session_factory=session_factory, agent=agent, clock=lambda: now)


@pytest.fixture
def configs(factory):
    """수요일 10:00 기준: 월요일 09시 / 수요일 18시 / 비활성 / 요일 미지정."""
    return {
        "monday": factory.config(name="Monday", days="monday", hour=9),
        "wednesday": factory.config(name="Wednesday", days="wednesday", hour=18),
        "inactive": factory.config(name="Inactive", days="tuesday", is_active=False),
        "no_days": factory.config(name="No days", days=""),
    }


class TestStartStop:
    def test_start_schedules_active_configs(self, report_scheduler, aps, configs):
        state = report_scheduler.start()

        assert state.running
        assert state.scheduled_config_ids == {configs["monday"].id, configs["wednesday"].id}
        assert state.next_execution_at == local(2025, 3, 10, 9, 0), "earliest across active configs"
        assert aps.get_job(ReportScheduler.job_id(configs["monday"].id)) is not None
        assert aps.get_job(ReportScheduler.job_id(configs["inactive"].id)) is None

    def test_per_config_next_execution(self, report_scheduler, configs):
        report_scheduler.start()

        assert report_scheduler.next_execution_for(configs["wednesday"].id) == local(2025, 3, 12, 18, 0)
        assert report_scheduler.next_execution_for(configs["no_days"].id) is None

    def test_start_with_no_configs(self, report_scheduler):
        state = report_scheduler.start()
        assert state.running
        assert state.next_execution_at is None

    def test_stop_removes_jobs(self, report_scheduler, aps, configs):
        report_scheduler.start()
        state = report_scheduler.stop()

        assert not state.running
        assert state.next_execution_at is None
        assert state.scheduled_config_ids == set()
        assert aps.get_jobs() == []

    def test_state_is_a_snapshot(self, report_scheduler, configs):
        report_scheduler.start()
        snapshot = report_scheduler.state
        snapshot.scheduled_config_ids.clear()

        assert report_scheduler.state.scheduled_config_ids, "callers cannot mutate scheduler state"


class TestReschedule:
    def test_unknown_config(self, report_scheduler):
        report_scheduler.start()
        with pytest.raises(ConfigurationError):
            report_scheduler.reschedule(9999)

    def test_not_running_does_nothing(self, report_scheduler, aps, configs):
        assert report_scheduler.reschedule(configs["monday"].id) is None
        assert aps.get_jobs() == []

    def test_deactivated_config_is_unscheduled(self, report_scheduler, aps, db, configs):
        report_scheduler.start()
        configs["monday"].is_active = False
        db.commit()

        assert report_scheduler.reschedule(configs["monday"].id) is None
        assert aps.get_job(ReportScheduler.job_id(configs["monday"].id)) is None
        assert report_scheduler.state.next_execution_at == local(2025, 3, 12, 18, 0)

    def test_rule_change_moves_job(self, report_scheduler, aps, db, configs):
        report_scheduler.start()
        configs["wednesday"].schedule_days = "thursday"
        configs["wednesday"].schedule_hour = 7
        db.commit()

        run_at = report_scheduler.reschedule(configs["wednesday"].id)

        assert run_at == local(2025, 3, 6, 7, 0)
        assert report_scheduler.state.next_execution_at == run_at

    def test_unschedule(self, report_scheduler, aps, configs):
        report_scheduler.start()

        assert report_scheduler.unschedule(configs["monday"].id) is True
        assert report_scheduler.unschedule(configs["monday"].id) is False
        state = report_scheduler.state
        assert configs["monday"].id not in state.scheduled_config_ids
        assert state.next_execution_at == local(2025, 3, 12, 18, 0)


class TestRunJob:
    def test_run_executes_and_rearms(self, report_scheduler, aps, agent, configs, now):
        report_scheduler.start()
        config_id = configs["monday"].id

        report_scheduler._run_job(config_id)

        assert len(agent.calls) == 1
        assert agent.calls[0][1].value == "AUTOMATIC"
        assert report_scheduler.state.last_execution_at == now
        assert aps.get_job(ReportScheduler.job_id(config_id)) is not None, "job re-armed after run"
        assert report_scheduler.next_execution_for(config_id) == local(2025, 3, 10, 9, 0)

    def test_run_after_stop_is_ignored(self, report_scheduler, agent, configs):
        report_scheduler.start()
        report_scheduler.stop()

        report_scheduler._run_job(configs["monday"].id)

        assert agent.calls == []

    def test_run_for_deactivated_config_unschedules(self, report_scheduler, aps, agent, db, configs):
        report_scheduler.start()
        configs["monday"].is_active = False
        db.commit()

        report_scheduler._run_job(configs["monday"].id)

        assert agent.calls == []
        assert aps.get_job(ReportScheduler.job_id(configs["monday"].id)) is None


class TestStatus:
    def test_status_payload(self, report_scheduler, configs):
        report_scheduler.start()
        status = report_scheduler.status()

        assert status["running"] is True
        assert status["active_configs"] == 2
        assert status["scheduled_config_ids"] == sorted([configs["monday"].id, configs["wednesday"].id])
        assert status["next_execution_at"] == local(2025, 3, 10, 9, 0).isoformat()
        assert {job["id"] for job in status["jobs"]} == {
            f"report_config_{configs['monday'].id}",
            f"report_config_{configs['wednesday'].id}",
        }
