"""Candidate generation, sequential mode and download gating."""

import threading

import pytest

from conftest import FakeAIClient, png_bytes
from storyspark.errors import GenerationError, InputValidationError, MissingCredentialError
from storyspark.images import to_data_url
from storyspark.models import SceneOverviewEntry
from storyspark.overview import ImageOrchestrator


def _entries(count=3):
    return [
        SceneOverviewEntry(scene_number=n, image_prompt=f"prompt {n}", video_prompt=f"video {n}")
        for n in range(1, count + 1)
    ]


def _orchestrator(client, reference_image, count=3):
    return ImageOrchestrator(client, _entries(count), reference_image)


def test_scene_pair_runs_in_parallel(reference_image):
    client = FakeAIClient()
    barrier = threading.Barrier(2, timeout=5)
    client.before_edit = barrier.wait
    orchestrator = _orchestrator(client, reference_image)

    results = orchestrator.generate_scene(1)

    assert len(results) == 2
    assert len(client.edit_calls) == 2
    inputs, prompt = client.edit_calls[0]
    assert len(inputs) == 1
    assert 'The text prompt is: "prompt 1"' in prompt
    assert orchestrator.loading == set()


def test_failed_call_is_filtered(reference_image):
    client = FakeAIClient(image_results=lambda n: None if n == 1 else b"only")
    orchestrator = _orchestrator(client, reference_image)

    assert orchestrator.generate_scene(2) == [to_data_url(b"only")]


def test_both_failures_leave_scene_untouched(reference_image):
    client = FakeAIClient()
    orchestrator = _orchestrator(client, reference_image)
    first = orchestrator.generate_scene(1)
    orchestrator.select(1, first[0])

    client.image_results = lambda n: RuntimeError("quota")
    with pytest.raises(GenerationError) as info:
        orchestrator.generate_scene(1)

    assert info.value.message_key == "errorImageGeneration"
    assert orchestrator.images.candidates[1] == first
    assert orchestrator.images.selected[1] == first[0]


def test_regenerate_clears_previous_selection(reference_image):
    orchestrator = _orchestrator(FakeAIClient(), reference_image)
    first = orchestrator.generate_scene(1)
    orchestrator.select(1, first[1])

    second = orchestrator.generate_scene(1)

    assert second != first
    assert 1 not in orchestrator.images.selected


def test_generate_all_walks_one_scene_at_a_time(reference_image):
    client = FakeAIClient()
    active = {"now": 0, "peak": 0}
    lock = threading.Lock()

    def track():
        with lock:
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
        threading.Event().wait(0.01)
        with lock:
            active["now"] -= 1

    client.before_edit = track
    orchestrator = _orchestrator(client, reference_image)
    orchestrator.generate_scene(2)
    seen = []

    failed = orchestrator.generate_all(on_scene=lambda entry: seen.append(entry.scene_number))

    assert failed == []
    assert seen == [1, 3]
    assert active["peak"] <= 2
    assert orchestrator.all_generated
    assert not orchestrator.generating_all


def test_generate_all_continues_after_a_failed_scene(reference_image):
    client = FakeAIClient(image_results=lambda n: None if n in (1, 2) else b"ok")
    orchestrator = _orchestrator(client, reference_image)

    assert orchestrator.generate_all() == [1]
    assert 1 not in orchestrator.images.candidates
    assert orchestrator.images.candidates[3]


def test_download_all_requires_every_scene_selected(reference_image):
    orchestrator = _orchestrator(FakeAIClient(), reference_image, count=2)
    orchestrator.generate_all()
    orchestrator.select(1, orchestrator.images.candidates[1][0])

    assert not orchestrator.all_selected
    with pytest.raises(InputValidationError):
        orchestrator.download_files()

    orchestrator.select(2, orchestrator.images.candidates[2][1])
    assert orchestrator.all_selected
    names = [name for name, _data, _mime in orchestrator.download_files()]
    assert names == ["StorySpark-Scene-1.png", "StorySpark-Scene-2.png"]


def test_reference_change_clears_all_images(reference_image):
    orchestrator = _orchestrator(FakeAIClient(), reference_image, count=2)
    orchestrator.generate_all()
    orchestrator.select(1, orchestrator.images.candidates[1][0])

    orchestrator.set_reference_image(to_data_url(png_bytes(color=(200, 0, 0, 255))))

    assert orchestrator.images.candidates == {}
    assert orchestrator.images.selected == {}


def test_missing_credential_blocks_generation(reference_image):
    orchestrator = _orchestrator(FakeAIClient(configured=False), reference_image)
    with pytest.raises(MissingCredentialError):
        orchestrator.generate_scene(1)
    with pytest.raises(MissingCredentialError):
        orchestrator.start_sequential()


def test_generation_needs_reference_image():
    orchestrator = ImageOrchestrator(FakeAIClient(), _entries(), None)
    with pytest.raises(InputValidationError):
        orchestrator.generate_scene(1)


def test_sequential_waits_for_each_selection(reference_image):
    client = FakeAIClient()
    orchestrator = _orchestrator(client, reference_image)
    selections_at_call = []
    client.before_edit = lambda: selections_at_call.append(dict(orchestrator.images.selected))

    run = orchestrator.start_sequential()
    assert run.active and run.index == 0
    assert len(client.edit_calls) == 2

    with pytest.raises(InputValidationError):
        run.confirm_and_next()
    assert len(client.edit_calls) == 2

    first_pick = run.candidates[1]
    run.choose(first_pick)
    run.confirm_and_next()

    assert run.index == 1
    assert orchestrator.images.candidates[1] == [first_pick]
    assert orchestrator.images.selected[1] == first_pick
    assert all(1 in seen for seen in selections_at_call[2:])
    inputs, prompt = client.edit_calls[2]
    assert len(inputs) == 2
    assert "PREVIOUS scene" in prompt

    run.choose(run.candidates[0])
    run.confirm_and_next()
    run.choose(run.candidates[0])
    assert run.is_last
    assert run.confirm_and_next() == []
    assert not run.active
    assert orchestrator.all_selected
    assert len(client.edit_calls) == 6


def test_sequential_regenerate_reuses_previous_pick(reference_image):
    client = FakeAIClient()
    orchestrator = _orchestrator(client, reference_image)
    run = orchestrator.start_sequential()
    run.choose(run.candidates[0])
    run.confirm_and_next()

    run.regenerate()

    assert run.chosen is None
    assert len(client.edit_calls[-1][0]) == 2


def test_sequential_cancel_discards_everything(reference_image):
    client = FakeAIClient()
    orchestrator = _orchestrator(client, reference_image)
    run = orchestrator.start_sequential()
    run.choose(run.candidates[0])
    run.confirm_and_next()

    run.cancel()

    assert not run.active
    assert orchestrator.images.candidates == {}
    assert orchestrator.images.selected == {}


def test_results_for_cancelled_run_are_dropped(reference_image):
    client = FakeAIClient()
    orchestrator = _orchestrator(client, reference_image)
    run = orchestrator.start_sequential()
    run.choose(run.candidates[0])
    cancelled = {"done": False}

    def cancel_mid_flight():
        if not cancelled["done"]:
            cancelled["done"] = True
            run.cancel()

    client.before_edit = cancel_mid_flight
    assert run.confirm_and_next() == []
    assert run.candidates == []
    assert orchestrator.images.selected == {}
