"""Per-client workflow: login, scan listing, fetch details, unpack, upload.

Abort scopes:
    ClientAbort (login, listing)       -> whole client, not marked done
    FilingAbort (detail page)          -> this filing, next row continues
    archive download / decode / upload -> this archive, next link continues
    EncodingUndetectable               -> this entry (handled in archive.py)
"""

import logging
from typing import Optional

import httpx

from .archive import unpack
from .config import AppConfig
from .db import Database
from .downloader import PortalHttp
from .errors import ArchiveUnreadable, ClientAbort, DetailFetchFailed, FilingAbort, ListingFetchFailed
from .models import Client, ClientOutcome, Credentials, FilingOutcome, Session
from .scraper import list_matching_detail_links, parse_detail_page
from .session import login
from .storage import Storage

logger = logging.getLogger("egov_scraper")


class ClientWorkflow:
    def __init__(self, config: AppConfig, http: PortalHttp, storage: Storage,
                 credentials: Credentials, db: Optional[Database] = None,
                 run_key: str = ""):
        self.config = config
        self.http = http
        self.storage = storage
        self.credentials = credentials
        self.db = db
        self.run_key = run_key

    @property
    def user_agent(self) -> str:
        return self.config.http.user_agent

    def process_client(self, client: Client) -> ClientOutcome:
        outcome = ClientOutcome(client=client.name)
        logger.info(f"[{client.name}] Starting")

        try:
            session = login(self.http, client, self.credentials, self.user_agent)
            root_id = self.storage.get_folder(client.folder_id)
            links = self._detail_links(client, session)
        except (ClientAbort, httpx.HTTPError, ValueError) as e:
            outcome.status = "aborted"
            outcome.error = f"{type(e).__name__}: {e}"
            logger.error(f"[{client.name}] Aborted: {outcome.error}")
            return outcome

        for link in links:
            outcome.filings.append(self.process_filing(client, session, root_id, link))

        failed = sum(1 for f in outcome.filings if f.status == "failed")
        outcome.status = "done"
        logger.info(
            f"[{client.name}] Done: {len(outcome.filings)} filings, {failed} failed, "
            f"{sum(len(f.uploaded) for f in outcome.filings)} files uploaded"
        )
        return outcome

    def _detail_links(self, client: Client, session: Session):
        resp = self.http.get(client.url, headers=session.headers(self.user_agent))
        if resp.status_code != 200:
            raise ListingFetchFailed(f"listing page returned {resp.status_code}")
        return list_matching_detail_links(resp.text, self.config.portal.target_status)

    def process_filing(self, client: Client, session: Session, root_id: str,
                       detail_link: str) -> FilingOutcome:
        if session.base_url != client.base_url:
            raise ValueError(f"session for {session.base_url} used with {client.base_url}")

        outcome = FilingOutcome(detail_link=detail_link)
        filing_id = self.db.insert_filing(self.run_key, client.name, detail_link) if self.db else None

        try:
            resp = self.http.get(client.make_url(detail_link),
                                 headers=session.headers(self.user_agent))
            if resp.status_code != 200:
                raise DetailFetchFailed(f"detail page returned {resp.status_code}")
            detail = parse_detail_page(resp.text)
        except (FilingAbort, httpx.HTTPError) as e:
            outcome.status = "failed"
            outcome.error = f"{type(e).__name__}: {e}"
            logger.error(f"[{client.name}] Filing {detail_link} failed: {outcome.error}")
            if filing_id:
                self.db.update_filing(filing_id, "failed", error=outcome.error)
            return outcome

        outcome.reference_number = detail.reference_number
        logger.info(f"[{client.name}] Reference number {detail.reference_number}: "
                    f"{len(detail.documents)} documents, {len(detail.comments)} comments")
        try:
            folder_id = self.storage.create_folder(root_id, detail.reference_number)
        except (OSError, ValueError) as e:
            outcome.status = "failed"
            outcome.error = f"{type(e).__name__}: {e}"
            logger.error(f"[{client.name}] Folder for {detail.reference_number} failed: {outcome.error}")
            if filing_id:
                self.db.update_filing(filing_id, "failed", detail.reference_number, outcome.error)
            return outcome

        errors = []
        for url in detail.download_links:
            try:
                archive = unpack(self.http, session, client.make_url(url), self.user_agent)
                outcome.skipped.extend(archive.skipped)
                for name in archive.skipped:
                    if filing_id:
                        self.db.insert_upload(filing_id, name, status="skipped")
                for file in archive:
                    storage_id = self.storage.create_file(folder_id, file)
                    outcome.uploaded.append(file.name)
                    if filing_id:
                        self.db.insert_upload(filing_id, file.name, file.content_type,
                                              len(file.content), storage_id)
            except (ArchiveUnreadable, httpx.HTTPError, ValueError, OSError) as e:
                errors.append(f"{url}: {e}")
                logger.error(f"[{client.name}] Archive {url} failed: {e}")

        outcome.status = "completed"
        outcome.error = "; ".join(errors) or None
        if filing_id:
            self.db.update_filing(filing_id, "completed", detail.reference_number, outcome.error)
        return outcome
