from app.scheduler import scheduler, start_scheduler, stop_scheduler


def test_cleanup_job_registered():
    job = scheduler.get_job("cleanup_unused_files")

    assert job is not None
    assert job.max_instances == 1
    fields = {field.name: str(field) for field in job.trigger.fields}
    assert fields["hour"] == "3"
    assert fields["minute"] == "0"


def test_scheduler_disabled_by_configuration():
    # SCHEDULER_ENABLED is off in the test environment
    start_scheduler()
    assert not scheduler.running
    stop_scheduler()
