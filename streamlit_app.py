"""Main Streamlit UI for StorySpark.

The wizard runs idea -> prompt selection -> overview, with an image editor
overlay on top of the overview. All state lives in one ``WizardController``
kept in ``st.session_state``.
"""

from __future__ import annotations

import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import streamlit as st
from streamlit_image_coordinates import streamlit_image_coordinates

# Ensure backend package is importable when running `streamlit run streamlit_app.py`.
ROOT = Path(__file__).resolve().parent
BACKEND_ROOT = ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

SECRET_ENV_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_DEFAULT_CHAT_MODEL",
    "OPENAI_IMAGE_MODEL",
    "STORYSPARK_LANGUAGE",
    "STORYSPARK_LOG_LEVEL",
)
OPENAI_SECRET_BLOCK = {
    "api_key": "OPENAI_API_KEY",
    "base_url": "OPENAI_BASE_URL",
    "default_chat_model": "OPENAI_DEFAULT_CHAT_MODEL",
    "image_model": "OPENAI_IMAGE_MODEL",
}
HEADER_LINKS = (
    ("hotVideoFinder", "https://barrytsai0315.github.io/youtube-trend-explorer/"),
    ("trendAnalysisPlatform", "https://barrytsai0315.github.io/youtube-trend-tracker/"),
)


def _env_from_secrets(secrets: Mapping[str, Any]) -> Dict[str, str]:
    """Map Streamlit secrets (an ``[openai]`` block or flat keys) to env names."""
    values: Dict[str, str] = {}
    openai_block = secrets.get("openai")
    if isinstance(openai_block, Mapping):
        for secret_key, env_key in OPENAI_SECRET_BLOCK.items():
            value = openai_block.get(secret_key)
            if isinstance(value, str) and value.strip():
                values[env_key] = value.strip()
    for key in SECRET_ENV_KEYS:
        value = secrets.get(key)
        if isinstance(value, str) and value.strip():
            values[key] = value.strip()
    return values


def _hydrate_env_from_streamlit_secrets() -> None:
    """Load config from Streamlit Secrets into env when not already set."""
    try:
        secrets = st.secrets.to_dict()
    except Exception:
        # No secrets.toml is the normal local setup.
        return
    for key, value in _env_from_secrets(secrets).items():
        if not os.getenv(key):
            os.environ[key] = value


_hydrate_env_from_streamlit_secrets()

from storyspark.app import create_app  # noqa: E402
from storyspark.controller import STEP_GENERATOR, STEP_IDEA, STEP_OVERVIEW, WizardController  # noqa: E402
from storyspark.errors import GenerationError, StorySparkError  # noqa: E402
from storyspark.images import from_data_url  # noqa: E402
from storyspark.intake import ProgressEstimator  # noqa: E402
from storyspark.mask_editor import DRAW, ERASE, MAX_BRUSH, MIN_BRUSH, parse_stroke_points  # noqa: E402
from storyspark.models import IMAGE_AXIS, IMAGE_STYLES, STORY_STYLES, VIDEO_AXIS, VIDEO_LENGTHS, VIDEO_TYPES  # noqa: E402


@st.cache_resource
def _get_app() -> Dict[str, Any]:
    return create_app()


def _rerun() -> None:
    st.rerun()


def _init_state() -> WizardController:
    app = _get_app()
    if "ss_controller" not in st.session_state:
        st.session_state["ss_controller"] = app["new_controller"]()
    st.session_state.setdefault("ss_flash", [])
    st.session_state.setdefault("ss_idea", st.session_state["ss_controller"].config.idea)
    st.session_state.setdefault("ss_upload_id", None)
    st.session_state.setdefault("ss_overview_upload_id", None)
    return st.session_state["ss_controller"]


def _error_text(controller: WizardController, exc: StorySparkError, **params: object) -> str:
    if exc.message_key == "errorImageGeneration" and "scene" not in params:
        params["scene"] = "?"
    return controller.t(exc.message_key, **params)


def _flash(message: str) -> None:
    st.session_state["ss_flash"].append(message)


def _show_flash() -> None:
    for message in st.session_state["ss_flash"]:
        st.error(message)
    st.session_state["ss_flash"] = []


def _image_bytes(data_url: str) -> bytes:
    return from_data_url(data_url)[1]


def _upload_key(upload: Any) -> str:
    return getattr(upload, "file_id", None) or f"{upload.name}:{upload.size}"


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          .scene-card { border: 1px solid rgba(120,120,140,0.25); border-radius: 10px; padding: 0.8rem 1rem; margin-bottom: 0.8rem; }
          .prompt-text { font-size: 0.88rem; color: #64748b; }
          .prompt-en { font-family: monospace; font-size: 0.78rem; color: #94a3b8; }
        </style>
        """,
        unsafe_allow_html=True,
    )


# Header

def _toggle_language(controller: WizardController) -> None:
    controller.toggle_language()


def _new_story(controller: WizardController) -> None:
    controller.new_story()
    st.session_state["ss_idea"] = ""
    st.session_state["ss_upload_id"] = None
    st.session_state["ss_overview_upload_id"] = None


def _header(controller: WizardController) -> None:
    title_col, link_col, lang_col, new_col = st.columns([4, 2, 1, 1])
    title_col.title("StorySpark")
    for key, url in HEADER_LINKS:
        link_col.link_button(controller.t(key), url, use_container_width=True)
    lang_col.button(
        "EN" if controller.language == "zh" else "中文",
        on_click=_toggle_language,
        args=(controller,),
        help=controller.t("language"),
        use_container_width=True,
    )
    if controller.step == STEP_OVERVIEW:
        new_col.button(
            controller.t("newStory"),
            on_click=_new_story,
            args=(controller,),
            use_container_width=True,
        )


# Idea intake

def _brainstorm(controller: WizardController) -> None:
    controller.intake.update(idea=st.session_state["ss_idea"])
    try:
        st.session_state["ss_idea"] = controller.intake.brainstorm()
    except StorySparkError as exc:
        _flash(_error_text(controller, exc))


def _submit_idea(controller: WizardController) -> None:
    t = controller.t
    try:
        controller.intake.validate()
    except StorySparkError as exc:
        st.error(_error_text(controller, exc))
        return

    estimator = ProgressEstimator.for_config(controller.config)
    bar = st.progress(0, text=f"{t('loadingMessage')} {t('loadingSubMessage')}")
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(controller.submit_idea)
        while not future.done():
            time.sleep(estimator.interval_ms / 1000)
            bar.progress(int(estimator.tick()), text=f"{t('loadingMessage')} {t('loadingSubMessage')}")
        try:
            future.result()
        except StorySparkError as exc:
            bar.empty()
            st.error(_error_text(controller, exc))
            return
    bar.progress(int(estimator.complete()))
    _rerun()


def _idea_view(controller: WizardController) -> None:
    t = controller.t
    config = controller.config
    st.subheader(t("generateStoryIdeas"))
    st.caption(t("craftYourNarrative"))

    left, right = st.columns(2)
    with left:
        st.text_area(
            t("storyDescription"),
            key="ss_idea",
            placeholder=t("storyDescriptionPlaceholder"),
            height=140,
        )
        story_style = st.selectbox(t("storyTheme"), STORY_STYLES, index=STORY_STYLES.index(config.story_style))
        image_style = st.selectbox(t("imageStyle"), IMAGE_STYLES, index=IMAGE_STYLES.index(config.image_style))
        controller.intake.update(idea=st.session_state["ss_idea"], story_style=story_style, image_style=image_style)
        st.button(t("brainstorm"), on_click=_brainstorm, args=(controller,), use_container_width=True)

    with right:
        upload = st.file_uploader(
            f"{t('referenceImage')} ({t('fileTypes')})",
            help=f"{t('uploadFile')} {t('dragAndDrop')}",
            key="ss_reference_upload",
        )
        if upload is not None and _upload_key(upload) != st.session_state["ss_upload_id"]:
            st.session_state["ss_upload_id"] = _upload_key(upload)
            try:
                controller.intake.attach_reference_image(upload.getvalue(), upload.type)
            except StorySparkError as exc:
                st.error(_error_text(controller, exc))
        if controller.config.reference_image:
            st.image(_image_bytes(controller.config.reference_image), use_container_width=True)

        video_type = st.selectbox(
            t("videoType"),
            VIDEO_TYPES,
            index=VIDEO_TYPES.index(config.video_type),
            format_func=lambda value: t("infiniteLoop") if value == "loop" else t("storyBased"),
        )
        video_length = st.selectbox(
            t("videoLength"),
            VIDEO_LENGTHS,
            index=VIDEO_LENGTHS.index(config.video_length),
            format_func=lambda value: t(f"seconds{value[:-1]}"),
        )
        controller.intake.update(video_type=video_type, video_length=video_length)

    if st.button(t("generate"), type="primary", use_container_width=True):
        _submit_idea(controller)


# Prompt picker

def _variant_choice(controller: WizardController, axis: str, scene, title: str) -> None:
    t = controller.t
    versions = scene.image_prompts if axis == IMAGE_AXIS else scene.image_to_video_prompts
    current = scene.selected_image_prompt_index if axis == IMAGE_AXIS else scene.selected_video_prompt_index
    st.markdown(f"#### {title}")
    choice = st.radio(
        title,
        [0, 1],
        index=current,
        format_func=lambda idx: f"{t('version')} {'AB'[idx]}",
        horizontal=True,
        label_visibility="collapsed",
        key=f"ss_{axis}_{scene.id}",
    )
    controller.picker.select(axis, choice)
    for idx, version in enumerate(versions):
        marker = "**>**" if idx == choice else ""
        st.markdown(
            f"{marker} **{t('version')} {'AB'[idx]}**  \n"
            f"<span class='prompt-text'>{version.chinese_prompt}</span>  \n"
            f"<span class='prompt-en'>{version.english_prompt}</span>",
            unsafe_allow_html=True,
        )


def _picker_view(controller: WizardController) -> None:
    t = controller.t
    picker = controller.picker
    if picker.is_empty:
        st.error(f"{t('errorTitle')}: {t('errorNoScenes')}")
        st.button(t("goBack"), on_click=controller.back_to_idea)
        return

    scene = picker.current
    st.subheader(t("promptSelectionTitle"))
    st.caption(f"{t('scene')} {scene.scene_number} / {len(picker.scenes)}")
    st.progress(picker.progress)

    st.markdown(f"### {t('storyContent')}")
    st.write(scene.story_content)

    image_col, video_col = st.columns(2)
    with image_col:
        _variant_choice(controller, IMAGE_AXIS, scene, t("imagePrompt"))
    with video_col:
        _variant_choice(controller, VIDEO_AXIS, scene, t("imageToVideoPrompt"))

    back, prev, nxt = st.columns(3)
    back.button(t("backToIdea"), on_click=controller.back_to_idea, use_container_width=True)
    prev.button(t("previous"), on_click=picker.previous, disabled=picker.index == 0, use_container_width=True)
    if picker.is_last:
        nxt.button(t("viewOverview"), on_click=controller.finish_selection, type="primary", use_container_width=True)
    else:
        nxt.button(t("next"), on_click=picker.next, use_container_width=True)


# Overview

def _generate_scene(controller: WizardController, scene_number: int) -> None:
    try:
        controller.orchestrator.generate_scene(scene_number)
    except StorySparkError as exc:
        _flash(_error_text(controller, exc, scene=scene_number))


def _generate_all(controller: WizardController) -> None:
    orchestrator = controller.orchestrator
    try:
        with st.spinner(controller.t("generating")):
            failed = orchestrator.generate_all()
    except StorySparkError as exc:
        _flash(_error_text(controller, exc))
        return
    for scene_number in failed:
        _flash(controller.t("errorImageGeneration", scene=scene_number))


def _sequential_action(controller: WizardController, action: str) -> None:
    orchestrator = controller.orchestrator
    try:
        if action == "start":
            orchestrator.start_sequential()
        elif action == "regenerate":
            orchestrator.sequential.regenerate()
        elif action == "confirm":
            orchestrator.sequential.confirm_and_next()
        elif action == "cancel":
            orchestrator.sequential.cancel()
    except GenerationError as exc:
        scene = orchestrator.sequential.scene.scene_number if orchestrator.sequential else "?"
        _flash(_error_text(controller, exc, scene=scene))
    except StorySparkError as exc:
        _flash(_error_text(controller, exc))


def _sequential_panel(controller: WizardController) -> None:
    t = controller.t
    run = controller.orchestrator.sequential
    with st.container(border=True):
        head, regen, cancel = st.columns([4, 1, 1])
        head.markdown(f"### {t('sequentialGenerateTitle')}")
        head.caption(t("sceneProgress", **run.progress()))
        regen.button(
            t("regenerate"),
            on_click=_sequential_action,
            args=(controller, "regenerate"),
            disabled=run.loading,
            use_container_width=True,
        )
        cancel.button(t("cancel"), on_click=_sequential_action, args=(controller, "cancel"), use_container_width=True)
        st.markdown(f"**Prompt:** {run.scene.image_prompt}")

        if run.candidates:
            cols = st.columns(len(run.candidates))
            for idx, src in enumerate(run.candidates):
                with cols[idx]:
                    st.image(_image_bytes(src), use_container_width=True)
                    label = t("selected") if src == run.chosen else t("selectImage")
                    st.button(label, key=f"ss_seq_pick_{run.index}_{idx}", on_click=run.choose, args=(src,))

        if run.chosen is None:
            st.caption(t("selectAnImage"))
        st.button(
            t("confirmSelectionLast") if run.is_last else t("confirmSelection"),
            type="primary",
            on_click=_sequential_action,
            args=(controller, "confirm"),
            disabled=run.chosen is None or run.loading,
        )


def _change_reference(controller: WizardController, upload: Any) -> None:
    try:
        controller.upload_reference_image(upload.getvalue(), upload.type)
    except StorySparkError as exc:
        st.error(_error_text(controller, exc))


def _overview_sidebar(controller: WizardController) -> None:
    t = controller.t
    with st.sidebar:
        st.markdown(f"### {t('referenceImage')}")
        if controller.config.reference_image:
            st.image(_image_bytes(controller.config.reference_image), use_container_width=True)
        st.button(t("editImage"), on_click=controller.start_edit, use_container_width=True)
        upload = st.file_uploader(t("changeImage"), type=["png", "jpg", "jpeg", "gif"], key="ss_overview_upload")
        if upload is not None and _upload_key(upload) != st.session_state["ss_overview_upload_id"]:
            st.session_state["ss_overview_upload_id"] = _upload_key(upload)
            _change_reference(controller, upload)
        st.caption(f"{t('imageGenerationModel')}: `{controller.ai_client.default_image_model}`")


def _scene_card(controller: WizardController, entry) -> None:
    t = controller.t
    orchestrator = controller.orchestrator
    images = orchestrator.images
    number = entry.scene_number
    busy = orchestrator.generating_all or (orchestrator.sequential is not None and orchestrator.sequential.active)
    with st.container(border=True):
        text_col, image_col = st.columns([3, 2])
        with text_col:
            st.markdown(f"**{t('scene')} {number}**")
            if entry.story_content:
                st.caption(entry.story_content)
            st.markdown(f"**{t('imagePrompt')}:** {entry.image_prompt}")
            st.markdown(f"**{t('videoPrompt')}:** {entry.video_prompt}")
            label = t("regenerate") if images.candidates.get(number) else t("generate")
            st.button(
                label,
                key=f"ss_generate_{number}",
                on_click=_generate_scene,
                args=(controller, number),
                disabled=busy or number in orchestrator.loading,
            )
        with image_col:
            candidates = images.candidates.get(number) or []
            if candidates:
                cols = st.columns(len(candidates))
                for idx, src in enumerate(candidates):
                    with cols[idx]:
                        st.image(_image_bytes(src), use_container_width=True)
                        chosen = images.selected.get(number) == src
                        if len(candidates) > 1 or not chosen:
                            st.button(
                                t("selected") if chosen else t("selectImage"),
                                key=f"ss_select_{number}_{idx}",
                                on_click=orchestrator.select,
                                args=(number, src),
                                disabled=chosen,
                            )


def _overview_view(controller: WizardController) -> None:
    t = controller.t
    orchestrator = controller.orchestrator
    _overview_sidebar(controller)
    st.subheader(t("promptOverview"))

    sequential_active = orchestrator.sequential is not None and orchestrator.sequential.active
    seq_col, all_col, dl_col = st.columns(3)
    seq_col.button(
        t("sequentialGenerate"),
        on_click=_sequential_action,
        args=(controller, "start"),
        disabled=orchestrator.generating_all or sequential_active,
        use_container_width=True,
    )
    all_label = t("allGenerated") if orchestrator.all_generated else t("generateAll")
    all_col.button(
        all_label,
        on_click=_generate_all,
        args=(controller,),
        disabled=orchestrator.generating_all or orchestrator.all_generated or sequential_active,
        type="primary",
        use_container_width=True,
    )
    dl_col.download_button(
        t("downloadAll"),
        data=orchestrator.download_bundle() if orchestrator.all_selected else b"",
        file_name="StorySpark-Scenes.zip",
        mime="application/zip",
        disabled=not orchestrator.all_selected,
        use_container_width=True,
    )
    if orchestrator.all_selected:
        file_cols = st.columns(len(orchestrator.scenes))
        for idx, (name, data, mime) in enumerate(orchestrator.download_files()):
            file_cols[idx].download_button(name, data=data, file_name=name, mime=mime, key=f"ss_dl_{idx}")

    if sequential_active:
        _sequential_panel(controller)

    for entry in orchestrator.scenes:
        _scene_card(controller, entry)


# Image editor

def _editor_generate(controller: WizardController) -> None:
    editor = controller.editor
    try:
        editor.generate(controller.ai_client, st.session_state["ss_edit_prompt"], controller.t("promptPlaceholder"))
    except StorySparkError as exc:
        _flash(_error_text(controller, exc))


def _click_point(value: Optional[Dict[str, Any]], display_size: Tuple[int, int]) -> Optional[Tuple[float, float]]:
    """Map a click on the rendered preview back to overlay pixels."""
    if not value:
        return None
    width, height = display_size
    shown_width = value.get("width") or width
    shown_height = value.get("height") or height
    return value["x"] * width / shown_width, value["y"] * height / shown_height


def _append_point(text: str, point: Tuple[float, float]) -> str:
    line = f"{point[0]:g},{point[1]:g}"
    return f"{text.rstrip()}\n{line}" if text.strip() else line


def _editor_stroke(controller: WizardController) -> None:
    try:
        points = parse_stroke_points(st.session_state["ss_stroke_points"])
    except StorySparkError as exc:
        _flash(_error_text(controller, exc))
        return
    controller.editor.stroke(points)
    st.session_state["ss_stroke_points"] = ""


def _editor_accept(controller: WizardController, image: str, finish: bool) -> None:
    result = controller.editor.accept(image, finish)
    if finish:
        controller.finish_edit(result)


def _editor_view(controller: WizardController) -> None:
    t = controller.t
    editor = controller.editor
    head, back = st.columns([5, 1])
    head.subheader(t("imageEditor"))
    back.button(t("backToOverview"), on_click=controller.finish_edit, args=(None,), use_container_width=True)

    tools, canvas = st.columns([1, 2])
    st.session_state.setdefault("ss_stroke_points", "")
    # Rendered before the tools column so a click can still feed the stroke text area.
    with canvas:
        width, height = editor.display_size
        click = streamlit_image_coordinates(editor.preview(), width=width, key="ss_canvas")
        if click and click != st.session_state.get("ss_canvas_last"):
            st.session_state["ss_canvas_last"] = click
            point = _click_point(click, editor.display_size)
            st.session_state["ss_stroke_points"] = _append_point(st.session_state["ss_stroke_points"], point)
        st.caption(f"{width} x {height}. {t('canvasHint')}")
    with tools:
        st.markdown(f"#### {t('addPrompt')}")
        st.text_area(t("addPrompt"), key="ss_edit_prompt", placeholder=t("promptPlaceholder"), label_visibility="collapsed")
        st.markdown(f"#### {t('maskTools')}")
        editor.set_brush_size(st.slider(t("brushSize"), MIN_BRUSH, MAX_BRUSH, editor.brush_size))
        editor.set_mode(
            st.radio(
                t("maskTools"),
                [DRAW, ERASE],
                index=[DRAW, ERASE].index(editor.mode),
                format_func=t,
                horizontal=True,
                label_visibility="collapsed",
            )
        )
        st.text_area(t("strokePoints"), key="ss_stroke_points", height=100)
        st.button(t("addStroke"), on_click=_editor_stroke, args=(controller,), use_container_width=True)
        st.button(t("clearMask"), on_click=editor.clear, use_container_width=True)
        st.button(
            t("generate"),
            type="primary",
            on_click=_editor_generate,
            args=(controller,),
            disabled=not st.session_state.get("ss_edit_prompt", "").strip(),
            use_container_width=True,
        )

    if editor.results:
        st.markdown(f"### {t('editResults')}")
        st.caption(t("selectOne"))
        cols = st.columns(len(editor.results))
        for idx, src in enumerate(editor.results):
            with cols[idx]:
                st.image(_image_bytes(src), use_container_width=True)
                st.button(t("useAndContinue"), key=f"ss_edit_continue_{idx}", on_click=_editor_accept, args=(controller, src, False))
                st.button(
                    t("useAndFinish"),
                    key=f"ss_edit_finish_{idx}",
                    type="primary",
                    on_click=_editor_accept,
                    args=(controller, src, True),
                )


def main() -> None:
    st.set_page_config(page_title="StorySpark", layout="wide")

    controller = _init_state()
    _inject_styles()
    _header(controller)

    if not controller.ai_client.configured:
        st.error(controller.t("errorAiInit"))
    _show_flash()

    step = controller.step
    if step == STEP_IDEA:
        _idea_view(controller)
    elif step == STEP_GENERATOR:
        _picker_view(controller)
    elif step == STEP_OVERVIEW and controller.editing:
        _editor_view(controller)
    else:
        _overview_view(controller)


if __name__ == "__main__":
    main()
