from GazeHeatmap.engine.adapter import EngineOptions, GazeEngineAdapter


def test_missing_engine_fails_soft():
    adapter = GazeEngineAdapter(None)
    assert adapter.start() is False
    assert not adapter.ready
    assert adapter.get_accuracy() is None
    adapter.record_calibration_click(1, 2)
    adapter.pause()


def test_unavailable_engine_fails_soft(unavailable_engine):
    adapter = GazeEngineAdapter(unavailable_engine)
    assert adapter.start() is False
    assert not adapter.ready


def test_unexpected_engine_error_fails_soft():
    class Exploding:
        def set_sample_callback(self, cb):
            raise RuntimeError("boom")

    adapter = GazeEngineAdapter(Exploding())  # type: ignore[arg-type]
    assert adapter.start() is False


def test_start_configures_and_begins(engine):
    adapter = GazeEngineAdapter(engine)
    adapter.configure(EngineOptions(regression_algorithm="mlp"))
    assert adapter.start()
    assert engine.begun
    assert engine.options.regression_algorithm == "mlp"
    assert adapter.get_accuracy() == 12.5


def test_failing_listener_does_not_block_others(ready_adapter, engine):
    got = []

    def bad(x, y, ts):
        raise ValueError("listener bug")

    ready_adapter.on_gaze_sample(bad)
    ready_adapter.on_gaze_sample(lambda x, y, ts: got.append((x, y, ts)))
    engine.emit(1.0, 2.0, 3)
    assert got == [(1.0, 2.0, 3)]


def test_listener_registration(ready_adapter, engine):
    got = []
    cb = lambda x, y, ts: got.append(x)  # noqa: E731
    ready_adapter.on_gaze_sample(cb)
    ready_adapter.on_gaze_sample(cb)
    engine.emit(1, 1)
    assert got == [1]
    ready_adapter.remove_gaze_listener(cb)
    ready_adapter.remove_gaze_listener(cb)
    engine.emit(2, 2)
    assert got == [1]


def test_visuals_and_clicks(ready_adapter, engine):
    ready_adapter.set_visuals(True, True)
    assert engine.options.show_video_preview and engine.options.show_prediction_overlay
    ready_adapter.hide_visuals()
    assert not engine.options.show_video_preview
    ready_adapter.record_calibration_click(5, 6)
    assert engine.clicks == [(5, 6)]
    ready_adapter.pause()
    assert engine.paused and not ready_adapter.ready
    ready_adapter.record_calibration_click(7, 8)
    assert engine.clicks == [(5, 6)]
