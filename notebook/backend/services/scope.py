"""
Scope Service.

Derives the note scope from the page the drawer was opened on, and
labels stored notes with their scope: the context name shown in the
list and the course/activity/profile tags.

Everything here is pure; callers pass in the directory records they
already loaded.
"""

from notebook.backend.core.config import get_app_config
from notebook.backend.core.config_schema import NotebookSchema
from notebook.backend.models.note import Note
from notebook.backend.models.platform import PlatformCourse, PlatformCourseModule, PlatformUser
from notebook.backend.schemas.note import NoteTag
from notebook.backend.schemas.scope import PageContext, Scope


def _notebook_settings(settings: NotebookSchema | None) -> NotebookSchema:
    return settings if settings is not None else get_app_config().notebook


def resolve_scope(page: PageContext, settings: NotebookSchema | None = None) -> Scope:
    """
    Derive the (user, course, module) scope of a page.

    Args:
        page: Context of the page the drawer was opened on
        settings: Notebook settings, read from application.yaml when omitted

    Returns:
        Scope for the ranking query and the default subject line
    """
    settings = _notebook_settings(settings)

    if page.context_level == "module":
        return Scope(course_id=page.course_id, module_id=page.instance_id)

    if page.context_level == "course":
        course_id = page.course_id or page.instance_id
        if course_id == settings.frontpage_course_id:
            course_id = 0
        user_id = 0
        if page.url_path.rstrip("/") == settings.course_profile_path:
            raw = page.url_params.get("id", "")
            user_id = int(raw) if raw.isdigit() else 0
        return Scope(user_id=user_id, course_id=course_id)

    if page.context_level == "user" and page.instance_id != page.actor_id:
        return Scope(user_id=page.instance_id)

    return Scope()


def normalize_scope(user_id: int, course_id: int, module_id: int) -> Scope:
    """A related user never carries a module."""
    if user_id:
        module_id = 0
    return Scope(user_id=user_id, course_id=course_id, module_id=module_id)


def context_name(note: Note) -> str:
    """Most specific scope label of a note."""
    if note.module_id or note.module_name:
        return "Activity"
    if note.user_id:
        return "Profile"
    if note.course_id or note.course_name:
        return "Course"
    return "Site"


def build_tags(
    note: Note,
    course: PlatformCourse | None,
    module: PlatformCourseModule | None,
    user: PlatformUser | None,
    settings: NotebookSchema | None = None,
) -> list[NoteTag]:
    """
    Build the scope badges of a note.

    A course or module that no longer exists keeps its cached name but
    loses its link, and the tooltip says it was deleted.
    """
    settings = _notebook_settings(settings)
    urls = settings.urls
    tags: list[NoteTag] = []

    if note.course_id or note.course_name:
        if course is not None:
            name = course.short_name
            tags.append(NoteTag(
                kind="course",
                title=name,
                url=urls.course.format(id=course.id),
                tooltip=f"Go to the course {name}",
            ))
        else:
            tags.append(NoteTag(
                kind="course",
                title=note.course_name,
                tooltip=f"{note.course_name} course has been deleted",
            ))

    if note.module_id or note.module_name:
        if module is not None:
            tags.append(NoteTag(
                kind="module",
                title=module.name,
                url=urls.module.format(id=module.id),
                tooltip=f"Go to the activity {module.name}",
            ))
        else:
            tags.append(NoteTag(
                kind="module",
                title=note.module_name,
                tooltip=f"{note.module_name} activity has been deleted",
            ))

    if note.user_id and user is not None:
        tags.append(NoteTag(
            kind="user",
            title=user.full_name,
            url=urls.profile.format(id=user.id),
            tooltip=f"Go to the profile {user.full_name}",
        ))

    return tags


def render_subject(
    count: int,
    scope: Scope,
    name: str,
    settings: NotebookSchema | None = None,
) -> str:
    """Render the default subject line for the n-th note in a scope."""
    templates = _notebook_settings(settings).subjects
    if scope.module_id:
        template = templates.module
    elif scope.user_id:
        template = templates.user
    elif scope.course_id:
        template = templates.course
    else:
        template = templates.site
    return template.format(count=count, name=name)
