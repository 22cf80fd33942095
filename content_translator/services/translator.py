"""
Batch Translation Service
=========================
Translates a set of keys into one target language in fixed-size batches.
"""
import time
import threading
from typing import Callable, Dict, Iterable, List, Optional

from content_translator.config import config
from content_translator.database.repositories import TranslationRepository
from content_translator.models.translation import SingleKeyTranslation, SourceEntry, TranslateJobResult
from content_translator.services.ai_client import AIGatewayClient, AIResponse, get_ai_client
from content_translator.services.prompts import InstructionBuilder
from content_translator.utils.exceptions import (
    ExternalServiceError,
    NotFoundError,
    PersistenceError,
    ValidationError
)
from content_translator.utils.logging import get_logger, debug_print
from content_translator.utils.text_processing import split_into_batches, parse_translation_entries
from content_translator.utils.validators import validate_language_code, validate_translation_keys


class BatchTranslator:
    """
    Batched translation orchestrator.

    Batches run strictly one after another: batch N is written (or
    recorded as failed) before batch N+1 is sent. A failing batch never
    aborts the job; its keys are reported in the result instead.
    """

    def __init__(
        self,
        client: AIGatewayClient = None,
        translations: TranslationRepository = None,
        instructions: InstructionBuilder = None,
        source_language: str = None,
        batch_size: int = None,
        max_keys: int = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.client = client or get_ai_client()
        self.translations = translations or TranslationRepository()
        self.instructions = instructions or InstructionBuilder()
        self.source_language = source_language or config.pipeline.source_language
        self.batch_size = batch_size or config.pipeline.batch_size
        self.max_keys = max_keys or config.pipeline.max_keys
        self.rate_limit_delay = config.pipeline.rate_limit_delay
        self.rate_limit_retries = config.pipeline.rate_limit_retries
        self.max_backoff = config.pipeline.max_backoff
        self.sleep = sleep
        self.logger = get_logger().translation_logger

    def validate(self, target_language: str, keys: Iterable[str], source_language: str) -> None:
        """Raise ValidationError for a request that must not be started."""
        errors = validate_translation_keys(keys, self.max_keys)

        valid, error = validate_language_code(target_language)
        if not valid:
            errors.append(f"Target language: {error}")
        valid, error = validate_language_code(source_language)
        if not valid:
            errors.append(f"Source language: {error}")
        if target_language == source_language:
            errors.append("Target language must differ from source language")

        if errors:
            raise ValidationError(errors)

    def translate(
        self,
        target_language: str,
        keys: Iterable[str],
        source_language: str = None,
        cancel_event: Optional[threading.Event] = None
    ) -> TranslateJobResult:
        """
        Translate keys from the source language into target_language.

        Args:
            target_language: Language code to write
            keys: Translation keys to translate (1..max_keys)
            source_language: Language to read texts from
            cancel_event: Checked before every batch; once set, the
                remaining batches are skipped and counted as failed

        Returns:
            TranslateJobResult accounting for every requested key

        Raises:
            ValidationError: before any work when the request is invalid
        """
        source_language = source_language or self.source_language
        self.validate(target_language, keys, source_language)
        requested = list(dict.fromkeys(keys))

        result = TranslateJobResult(language=target_language)
        self.logger.info(
            f"Starting translation: {len(requested)} keys, {source_language} -> {target_language}"
        )

        entries = self._load_source_entries(requested, source_language, result)
        batches = split_into_batches(entries, self.batch_size)
        instruction = self.instructions.build(target_language)

        self.logger.info(f"Processing {len(batches)} batches for {target_language}")

        for batch_number, batch in enumerate(batches, start=1):
            if cancel_event is not None and cancel_event.is_set():
                remaining = sum(len(b) for b in batches[batch_number - 1:])
                result.failed += remaining
                result.cancelled = True
                self.logger.warning(
                    f"Translation for {target_language} cancelled before batch "
                    f"{batch_number}/{len(batches)}; {remaining} keys not processed"
                )
                break

            debug_print(
                f"📝 {target_language}: batch {batch_number}/{len(batches)} ({len(batch)} texts)",
                'INFO', 'TRANS'
            )
            try:
                self._process_batch(batch_number, batch, target_language, instruction, result)
            except Exception as e:
                self.logger.exception(f"Unexpected error in batch {batch_number} for {target_language}: {e}")
                self._fail_batch(result, batch_number, len(batch))

        self.logger.info(
            f"{target_language} complete: {result.translated} translated, "
            f"{result.failed} failed, status={result.status.value}"
        )
        return result

    def translate_key(
        self,
        target_language: str,
        translation_key: str,
        context: Optional[str] = None,
        source_language: str = None
    ) -> SingleKeyTranslation:
        """
        Translate one key immediately, optionally with a context override.

        Unlike translate(), failures are raised to the caller.

        Raises:
            ValidationError: invalid key, language or context
            NotFoundError: the key has no source text
            ExternalServiceError: the capability failed or returned no
                usable translation
        """
        source_language = source_language or self.source_language
        self.validate(target_language, [translation_key], source_language)
        if context is not None and not isinstance(context, str):
            raise ValidationError(["context must be a string"])

        source_row = self.translations.get(translation_key, source_language)
        if source_row is None or source_row.is_empty:
            raise NotFoundError(f"No {source_language} source text for {translation_key}")

        entry = SourceEntry(
            key=translation_key,
            text=source_row.translated_text,
            page=source_row.page_location or 'general',
            context=context or source_row.context or '',
        )
        response = self._request_batch([entry], target_language, self.instructions.build(target_language))
        if not response.success:
            raise ExternalServiceError(
                f"Translation of {translation_key} failed: {response.error}",
                status_code=response.status_code,
                rate_limited=response.rate_limited
            )

        valid = self._validate_entries([entry], parse_translation_entries(response.text))
        if translation_key not in valid:
            raise ExternalServiceError(f"No valid translation returned for {translation_key}")

        self.translations.upsert_translations(
            target_language,
            [(translation_key, valid[translation_key], entry.context or None)]
        )
        self.logger.info(f"Translated {translation_key} into {target_language}")
        return SingleKeyTranslation(
            translation_key=translation_key,
            language=target_language,
            source_text=source_row.translated_text,
            translated_text=valid[translation_key],
            context=entry.context or None,
        )

    def _load_source_entries(
        self,
        requested: List[str],
        source_language: str,
        result: TranslateJobResult
    ) -> List[SourceEntry]:
        """
        Read every source row in one scan and keep the requested keys.

        Keys without usable source text are counted as failed.
        """
        wanted = set(requested)
        try:
            source_rows = self.translations.get_by_language(source_language)
        except Exception as e:
            self.logger.error(f"Failed to fetch source texts for {source_language}: {e}")
            result.failed += len(requested)
            return []

        by_key = {row.translation_key: row for row in source_rows if row.translation_key in wanted}

        entries = []
        for key in requested:
            row = by_key.get(key)
            if row is None or row.is_empty:
                continue
            entries.append(SourceEntry(
                key=key,
                text=row.translated_text,
                page=row.page_location or 'general',
                context=row.context or '',
            ))

        skipped = len(requested) - len(entries)
        if skipped:
            result.failed += skipped
            self.logger.warning(f"{skipped} requested keys have no source text in {source_language}")

        self.logger.info(
            f"Fetched {len(source_rows)} source texts, filtered to {len(entries)} requested keys"
        )
        return entries

    def _request_batch(self, batch: List[SourceEntry], target_language: str, instruction: str) -> AIResponse:
        """Call the capability, backing off on rate limits a bounded number of times."""
        payload = [entry.to_payload() for entry in batch]
        attempt = 0
        while True:
            response = self.client.translate(payload, target_language, instruction)
            if response.success or not response.rate_limited:
                return response

            delay = min(self.rate_limit_delay * (2 ** attempt), self.max_backoff)
            self.logger.warning(
                f"Rate limit hit for {target_language} (attempt {attempt + 1}), waiting {delay:.1f}s"
            )
            self.sleep(delay)
            if attempt >= self.rate_limit_retries:
                return response
            attempt += 1

    def _validate_entries(self, batch: List[SourceEntry], entries: List[Dict[str, str]]) -> Dict[str, str]:
        """
        Keep entries that are real translations of keys in this batch.

        Empty text, text equal to its own key and text that cannot be
        stored as UTF-8 are rejected here, so a broken row can never be
        written by this service.
        """
        batch_keys = {entry.key for entry in batch}
        valid = {}
        for entry in entries:
            key, text = entry['key'], entry['text']
            if key not in batch_keys:
                self.logger.warning(f"Ignoring translation for unrequested key {key}")
                continue
            if not text.strip() or text.strip() == key:
                self.logger.warning(f"Invalid translation for {key}: text={text!r}")
                continue
            try:
                text.encode('utf-8')
            except UnicodeEncodeError:
                self.logger.warning(f"Undecodable translation for {key}: text={text!r}")
                continue
            valid[key] = text
        return valid

    def _process_batch(
        self,
        batch_number: int,
        batch: List[SourceEntry],
        target_language: str,
        instruction: str,
        result: TranslateJobResult
    ) -> None:
        """
        Translate and store one batch.

        The result is only touched once the batch has reached its outcome,
        so an exception escaping from here leaves every key of the batch
        uncounted.
        """
        response = self._request_batch(batch, target_language, instruction)
        if not response.success:
            self.logger.error(f"AI error for batch {batch_number}: {response.error}")
            self._fail_batch(result, batch_number, len(batch))
            return

        try:
            entries = parse_translation_entries(response.text)
        except ExternalServiceError as e:
            self.logger.error(f"Failed to parse batch {batch_number}: {e}")
            self._fail_batch(result, batch_number, len(batch))
            return

        valid = self._validate_entries(batch, entries)
        if not valid:
            self.logger.error(f"All translations invalid in batch {batch_number}")
            self._fail_batch(result, batch_number, len(batch))
            return

        contexts = {entry.key: entry.context or None for entry in batch}
        records = [(key, text, contexts[key]) for key, text in valid.items()]
        try:
            self.translations.upsert_translations(target_language, records)
        except PersistenceError as e:
            self.logger.error(f"Database error for batch {batch_number}: {e}")
            self._fail_batch(result, batch_number, len(batch))
            return

        dropped = len(batch) - len(valid)
        if dropped:
            self.logger.warning(f"Only {len(valid)}/{len(batch)} translations valid in batch {batch_number}")
        result.translated += len(valid)
        result.failed += dropped
        self.logger.info(f"Batch {batch_number} complete: {len(valid)} translations saved")

    @staticmethod
    def _fail_batch(result: TranslateJobResult, batch_number: int, key_count: int) -> None:
        if batch_number not in result.failed_batches:
            result.failed_batches.append(batch_number)
        result.failed += key_count
