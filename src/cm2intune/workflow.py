"""Orchestration of search, analysis, migration and publishing.

This is the only layer that handles failures from the components below
it. Expected conditions come back as empty results or negative verdicts
and are turned into a ``MigrationOutcome`` with a message for the
operator. Collaborator failures (``Cm2IntuneError``) and filesystem
errors (``OSError``) are logged at ERROR, whatever the attempt created in
staging is removed, and a failed outcome is returned. Nothing here
raises for a single failed migration.

Every operation takes the ``MigrationSession`` and returns the updated
session alongside its result.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path

from cm2intune.collaborators.base import (
    LegacyApplication,
    OperatorPrompt,
    Packager,
    Publisher,
    SiteQuery,
)
from cm2intune.core.classifier import MigratabilityVerdict, classify
from cm2intune.core.detection import select_detection
from cm2intune.core.manifest import (
    ORIGIN_CONFIGMGR,
    ORIGIN_FILESYSTEM,
    OriginInfo,
    PackageManifest,
    ReviewRejected,
    apply_review,
    build_manifest,
)
from cm2intune.core.naming import NamePair
from cm2intune.core.status import ReadinessStatus, evaluate_status
from cm2intune.discovery import (
    INSTALLER_EXTENSIONS,
    SourceFileInfo,
    SourceLocator,
    build_source_info,
)
from cm2intune.exceptions import Cm2IntuneError, StagingError
from cm2intune.parsers import DeploymentTypeFacts, parse_descriptor
from cm2intune.session import MigrationSession
from cm2intune.staging import ProgressCallback, StagingLayout, icon_reference

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0"


@dataclass(frozen=True)
class ApplicationStatus:
    """An application from a search together with its readiness badge."""

    application: LegacyApplication
    status: ReadinessStatus


@dataclass(frozen=True)
class MigrationOutcome:
    """Result of one migration or publish attempt.

    Attributes:
        succeeded: True when the attempt completed.
        message: Operator-facing summary.
        manifest: The final manifest, when one was built.
        staged_path: Staging directory, when staging completed.
        app_id: Published application id, for publish attempts.
        verdict: The classifier verdict, for migrations from the site.
    """

    succeeded: bool
    message: str
    manifest: PackageManifest | None = None
    staged_path: Path | None = None
    app_id: str | None = None
    verdict: MigratabilityVerdict | None = None


def _failed(message: str, **kwargs: object) -> MigrationOutcome:
    return MigrationOutcome(succeeded=False, message=message, **kwargs)


# -- Search and analysis ----------------------------------------------------


def search_applications(
    session: MigrationSession,
    site: SiteQuery,
    pattern: str,
) -> tuple[list[ApplicationStatus], MigrationSession]:
    """Query the site and compute a readiness badge for every match.

    Raises:
        ExternalServiceError: If the site query fails. Searching has no
            attempt to abort, so the caller reports it.
    """
    applications = site.find_applications(pattern)
    statuses = [
        ApplicationStatus(app, evaluate_status(parse_descriptor(app.sdm_package_xml, app.name)))
        for app in applications
    ]
    return statuses, session.with_applications(applications)


def analyze_application(application: LegacyApplication) -> MigratabilityVerdict:
    """Parse an application's descriptor and classify it."""
    return classify(parse_descriptor(application.sdm_package_xml, application.name))


# -- Migration --------------------------------------------------------------


def migrate_application(
    session: MigrationSession,
    application: LegacyApplication,
    prompt: OperatorPrompt,
    *,
    force: bool = False,
    allow_unsuitable: bool = False,
    review: bool = True,
    on_progress: ProgressCallback | None = None,
) -> tuple[MigrationOutcome, MigrationSession]:
    """Migrate one site application into a staged package.

    Args:
        session: Current session.
        application: The application record to migrate.
        prompt: Operator interaction.
        force: Overwrite an existing staging directory.
        allow_unsuitable: Continue without asking when the classifier
            says the application is not migratable.
        review: Offer the manifest for operator review before staging.
        on_progress: Copy progress callback.

    Returns:
        The outcome and the updated session.
    """
    try:
        return _migrate_application(
            session, application, prompt,
            force=force, allow_unsuitable=allow_unsuitable,
            review=review, on_progress=on_progress,
        )
    except (Cm2IntuneError, OSError) as exc:
        logger.error("Migration of %s failed: %s", application.name, exc, exc_info=True)
        return _failed(f"Migration of {application.name} failed: {exc}"), session


def _migrate_application(
    session: MigrationSession,
    application: LegacyApplication,
    prompt: OperatorPrompt,
    *,
    force: bool,
    allow_unsuitable: bool,
    review: bool,
    on_progress: ProgressCallback | None,
) -> tuple[MigrationOutcome, MigrationSession]:
    settings = session.settings
    facts = parse_descriptor(application.sdm_package_xml, application.name)
    verdict = classify(facts)
    logger.info(
        "%s: migratable=%s category=%s (%s)",
        application.name, verdict.is_migratable, verdict.category, verdict.reason,
    )

    if not verdict.is_migratable:
        question = (
            f"{application.name} is not suitable for migration: {verdict.reason}. "
            "Continue anyway?"
        )
        if not allow_unsuitable and not prompt.confirm(question):
            return _failed(
                f"Migration of {application.name} cancelled: {verdict.reason}",
                verdict=verdict,
            ), session

    chosen = verdict.selected or (facts[0] if facts else None)
    locator = SourceLocator(prompt, settings.alternate_source_path, settings.msi_helper)
    source = locator.locate(
        chosen.content_locations if chosen else (),
        application.manufacturer,
        application.name,
        application.version,
    )
    if source is None:
        logger.warning("No installer file found for %s", application.name)
        return _failed(
            f"No installer file found for {application.name}", verdict=verdict,
        ), session

    info = source.version_info
    names = NamePair.from_application(
        application.manufacturer or (info.company_name if info else ""),
        application.name,
    )
    version = application.version.strip() or (info.version if info else "") or DEFAULT_VERSION
    detection = select_detection(
        source,
        chosen.uninstall_command if chosen else "",
        publisher_hint=application.manufacturer,
        install_command_hint=chosen.install_command if chosen else "",
        display_name=application.name,
    )
    icon_payload = chosen.icon_payload if chosen else None
    manifest = build_manifest(
        names,
        version,
        source,
        detection,
        chosen if chosen and chosen.has_install_command else None,
        category=verdict.category if verdict.is_migratable else None,
        origin=_configmgr_origin(settings.site_code, application, chosen, source),
        icon_reference=icon_reference(icon_payload),
    )
    outcome = _review_and_stage(
        session, manifest, source, icon_payload, prompt,
        force=force, review=review, on_progress=on_progress,
    )
    outcome = replace(outcome, verdict=verdict)
    if outcome.succeeded:
        session = session.with_staged_path(outcome.staged_path)
    return outcome, session


def _configmgr_origin(
    site_code: str,
    application: LegacyApplication,
    facts: DeploymentTypeFacts | None,
    source: SourceFileInfo,
) -> OriginInfo:
    return OriginInfo(
        source=ORIGIN_CONFIGMGR,
        site_code=site_code,
        application_name=application.name,
        deployment_type=facts.name if facts else "",
        technology=facts.technology if facts else "",
        content_location=(facts.primary_location or "") if facts else "",
        source_path=str(source.origin_dir),
    )


def package_installer(
    session: MigrationSession,
    installer: Path,
    prompt: OperatorPrompt,
    *,
    publisher: str | None = None,
    name: str | None = None,
    version: str | None = None,
    force: bool = False,
    review: bool = True,
    on_progress: ProgressCallback | None = None,
) -> tuple[MigrationOutcome, MigrationSession]:
    """Stage a package for an installer file that has no descriptor.

    Names and version come from the arguments when given, otherwise from
    the installer's version metadata, otherwise from the file name.
    """
    if installer.suffix.lower() not in INSTALLER_EXTENSIONS:
        return _failed(f"Not an installer file: {installer}"), session
    try:
        source = build_source_info(installer.resolve(), session.settings.msi_helper)
        info = source.version_info
        names = NamePair.from_file_metadata(
            publisher or (info.company_name if info else ""),
            name or (info.product_name if info else ""),
            installer.stem,
        )
        resolved_version = (version or "").strip() or (info.version if info else "") or DEFAULT_VERSION
        detection = select_detection(
            source,
            publisher_hint=publisher,
            display_name=name or installer.stem,
        )
        manifest = build_manifest(
            names, resolved_version, source, detection, None,
            origin=OriginInfo(source=ORIGIN_FILESYSTEM, source_path=str(source.origin_dir)),
        )
        outcome = _review_and_stage(
            session, manifest, source, None, prompt,
            force=force, review=review, on_progress=on_progress,
        )
    except (Cm2IntuneError, OSError) as exc:
        logger.error("Packaging of %s failed: %s", installer, exc, exc_info=True)
        return _failed(f"Packaging of {installer.name} failed: {exc}"), session

    if outcome.succeeded:
        session = session.with_staged_path(outcome.staged_path)
    return outcome, session


def _review_and_stage(
    session: MigrationSession,
    manifest: PackageManifest,
    source: SourceFileInfo,
    icon_payload: str | None,
    prompt: OperatorPrompt,
    *,
    force: bool,
    review: bool,
    on_progress: ProgressCallback | None,
) -> MigrationOutcome:
    if review:
        edited = prompt.review(manifest)
        if edited is None:
            return _failed(f"Review of {manifest.display_name} cancelled", manifest=manifest)
        try:
            manifest = apply_review(manifest, edited)
        except ReviewRejected as exc:
            logger.warning("Review rejected: %s", exc)
            return _failed(f"Review rejected: {exc}", manifest=manifest)

    layout = StagingLayout.for_package(
        session.settings.staging_path,
        manifest.publisher,
        manifest.application_name,
        manifest.version,
    )
    created = False
    try:
        created = layout.prepare(force=force)
        layout.copy_sources(source, on_progress)
        layout.write_icon(icon_payload)
        layout.write_manifest(manifest)
    except StagingError as exc:
        logger.error("%s", exc)
        if created:
            layout.remove()
        return _failed(str(exc), manifest=manifest)
    except OSError as exc:
        logger.error("Staging %s failed: %s", layout.root, exc, exc_info=True)
        if created:
            layout.remove()
        return _failed(f"Staging failed: {exc}", manifest=manifest)

    logger.info("Staged %s at %s", manifest.display_name, layout.root)
    return MigrationOutcome(
        succeeded=True,
        message=f"Staged {manifest.display_name} at {layout.root}",
        manifest=manifest,
        staged_path=layout.root,
    )


# -- Publishing -------------------------------------------------------------


def publish_staged(
    session: MigrationSession,
    staged_dir: Path,
    packager: Packager,
    publisher: Publisher,
) -> tuple[MigrationOutcome, MigrationSession]:
    """Package a staged directory into a container and publish it.

    The container is built in a temporary directory, backed up under
    ``intunewin/`` and published. The temporary directory is always
    removed; the backup is removed again when publishing fails.
    """
    settings = session.settings
    layout = StagingLayout(staged_dir)
    work_dir = Path(tempfile.mkdtemp(prefix="cm2intune-"))
    backup: Path | None = None
    try:
        manifest = layout.read_manifest()
        setup = layout.sources / manifest.setup_file
        if not manifest.setup_file or not setup.is_file():
            raise StagingError(f"Setup file {manifest.setup_file!r} not found in {layout.sources}")

        artifact = packager.build(layout.sources, manifest.setup_file, work_dir)
        backup = layout.backup_container(artifact)
        auth = publisher.authenticate(settings.tenant_id, settings.client_id, settings.client_secret)
        app_id = publisher.publish(auth, manifest, backup, layout.find_icon())
    except (Cm2IntuneError, OSError) as exc:
        logger.error("Publishing %s failed: %s", staged_dir, exc)
        if backup is not None:
            backup.unlink(missing_ok=True)
        return _failed(f"Publishing failed: {exc}"), session
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)

    return MigrationOutcome(
        succeeded=True,
        message=f"Published {manifest.display_name} as {app_id}",
        manifest=manifest,
        staged_path=staged_dir,
        app_id=app_id,
    ), session.with_staged_path(staged_dir)
