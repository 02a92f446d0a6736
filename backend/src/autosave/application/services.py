from autosave.domain.entities import SaveRequest, SaveResult
from documents.domain.content import normalize_title, validate_content
from documents.domain.entities import DEFAULT_TITLE
from documents.domain.repository import DocumentRepository
from permissions.application.services import require_permission
from permissions.domain.entities import PermissionLevel
from sharing.domain.repository import ShareRepository
from versions.application.services import PendingVersionQueue, record_version
from versions.domain.repository import VersionRepository


async def save_document(
    documents: DocumentRepository,
    shares: ShareRepository,
    versions: VersionRepository,
    retry_queue: PendingVersionQueue,
    request: SaveRequest,
) -> SaveResult:
    """Commit an edit: write the document, then append its version.

    Nothing is written unless the caller holds write access. The document
    write is the source of truth; if the version append fails afterwards
    the append is queued for retry and ``version`` is None.
    """
    title = normalize_title(request.title, DEFAULT_TITLE)
    content = validate_content(request.content)

    current, _ = await require_permission(
        documents, shares, request.user_id, request.document_id, PermissionLevel.WRITE
    )
    changed_elsewhere = (
        request.expected_updated_at is not None
        and current.updated_at != request.expected_updated_at
    )

    document = await documents.update_content(
        request.document_id, title, content, request.user_id
    )
    version = await record_version(
        versions,
        retry_queue,
        request.document_id,
        title,
        content,
        request.user_id,
        commit_id=request.commit_id,
    )
    return SaveResult(document=document, version=version, changed_elsewhere=changed_elsewhere)
