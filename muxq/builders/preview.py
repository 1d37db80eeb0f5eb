# muxq/builders/preview.py
import shlex
from pathlib import Path

from ..models.job import Job, PreviewPlan, PreviewResult
from ..utils.paths import resolve_output_paths
from ..utils.settings import MuxSettings
from .mkvmerge import Probe, synthesize


def join_command(program: str, args: list[str]) -> str:
    return shlex.join([program, *args])


def missing_file_warnings(job: Job) -> list[str]:
    warnings = []
    if not Path(job.primary.path).exists():
        warnings.append(f"Video file missing: {job.primary.path}")
    for label, files in (
        ("Audio", job.audios),
        ("Subtitle", job.subtitles),
        ("Chapter", job.chapters),
        ("Attachment", job.attachments),
    ):
        warnings += [f"{label} file missing: {f.path}" for f in files if not Path(f.path).exists()]
    return warnings


def preview_job(job: Job, settings: MuxSettings, probe: Probe | None = None, program: str = "mkvmerge") -> PreviewResult:
    paths = resolve_output_paths(job, settings)
    synthesis = synthesize(job, settings, str(paths.output), probe)
    return PreviewResult(
        job_id=job.id,
        command_line=join_command(program, synthesis.arguments),
        warnings=missing_file_warnings(job),
        plan=PreviewPlan(
            primary=job.primary.path,
            output=str(paths.output),
            audios=list(job.audios),
            subtitles=list(job.subtitles),
            chapters=list(job.chapters),
            attachments=list(job.attachments),
        ),
    )
