#!/usr/bin/env python3
"""
TenderRAG Demo Application

Ingests a sample tender document and a harvested TenderNed record, then runs a
context search and prints the prompt block. Without EMBEDDING_API_KEY the
chunks stay unembedded and search falls back to lexical matching.
"""

import asyncio
import logging
import sys
from datetime import date, datetime

from tenderrag import ChunkOwner, RAGEngine, SearchScope, TenderRecord, load_settings

SAMPLE_DOCUMENT = """
Programma van Eisen - Onderhoud openbare verlichting.

De gemeente zoekt een opdrachtnemer voor het beheer en onderhoud van circa
12.000 lichtmasten. De opdrachtnemer voert storingen binnen 24 uur af en
rapporteert maandelijks over de beschikbaarheid van de installaties.

Gunningscriteria: prijs weegt voor 40 procent, kwaliteit voor 60 procent.
Duurzaamheid en CO2-reductie maken onderdeel uit van het kwaliteitscriterium.
"""


async def run() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger = logging.getLogger("main")

    engine = RAGEngine(settings)
    try:
        document = ChunkOwner(
            id="doc-1",
            title="Programma van Eisen openbare verlichting",
            project_id="project-1",
            organization_id="org-1",
            published_at=datetime.now(),
        )
        report = await engine.ingest_document(document, SAMPLE_DOCUMENT)
        logger.info(f"Document: {report.embedded_chunks}/{report.total_chunks} embedded ({report.status})")

        tender = TenderRecord(
            id="tender-1",
            external_id="TN-123456",
            title="Onderhoud openbare verlichting regio Utrecht",
            description="Meerjarig onderhoudscontract voor lichtmasten en armaturen.",
            contracting_authority="Gemeente Utrecht",
            publication_date=date(2024, 3, 1),
        )
        report = await engine.ingest_tender(tender)
        logger.info(f"Tender: {report.embedded_chunks}/{report.total_chunks} embedded ({report.status})")

        scope = SearchScope(project_id="project-1", organization_id="org-1")
        for result in await engine.search("onderhoud lichtmasten", scope):
            logger.info(f"{result.relevance:.3f} [{result.source}] {result.title}")

        print(await engine.build_context("gunningscriteria kwaliteit", scope))
    finally:
        await engine.aclose()


if __name__ == "__main__":
    asyncio.run(run())
