"""
End-to-end translation runs against an in-memory shop. Only the provider
client is mocked; extraction, chunking, response recovery, reassembly and the
overwrite policy run for real.
"""
import copy
import json

import pytest

from shop_translator.models import (
    CmsBlock,
    CmsPage,
    CmsSection,
    CmsSlot,
    EntityType,
    Language,
    Product,
    Snippet,
    SnippetSet
)
from shop_translator.translation_service import TranslationService


class InMemoryShop:
    """Source store, target store and language directory backed by dicts."""

    def __init__(self):
        self.languages = {
            'lang-de': Language('lang-de', 'de-DE', 'Deutsch'),
            'lang-fr': Language('lang-fr', 'fr-FR', 'Français'),
            'lang-en': Language('lang-en', 'en-GB', 'English'),
        }
        self.products = {}
        self.product_translations = {}
        self.pages = {}
        self.slot_translations = {}
        self.snippet_sets = {}
        self.snippets = {}
        self.writes = []

    # LanguageDirectory

    def resolve_language(self, language_id):
        return self.languages.get(language_id)

    def resolve_language_id_by_locale(self, locale_code):
        for language in self.languages.values():
            if language.locale_code == locale_code:
                return language.id
        return None

    def list_languages(self):
        return list(self.languages.values())

    # SourceStore

    def fetch_product(self, product_id, language_id):
        product = self.products.get(product_id)
        if product is None:
            return None
        translated = self.product_translations.get((product_id, language_id), {})
        # Untranslated fields fall back to the default language, like the shop does.
        return Product(
            id=product.id,
            name=translated.get('name', product.name),
            description=translated.get('description', product.description),
            custom_fields={**product.custom_fields, **translated.get('customFields', {})},
        )

    def fetch_cms_page(self, page_id, language_id):
        page = self.pages.get(page_id)
        if page is None:
            return None
        page = copy.deepcopy(page)
        for section in page.sections:
            for block in section.blocks:
                for slot in block.slots:
                    slot.config = copy.deepcopy(self.slot_translations.get((slot.id, language_id), slot.config))
        return page

    def fetch_snippet(self, snippet_id):
        for snippets in self.snippets.values():
            for snippet in snippets.values():
                if snippet.id == snippet_id:
                    return snippet
        return None

    def fetch_snippets(self, set_id, snippet_ids=None):
        snippets = list(self.snippets.get(set_id, {}).values())
        if snippet_ids is not None:
            snippets = [snippet for snippet in snippets if snippet.id in snippet_ids]
        return snippets

    def fetch_snippet_set(self, set_id):
        return self.snippet_sets.get(set_id)

    # TargetStore

    def write_localized_fields(self, entity_type, entity_id, language_id, fields):
        self.writes.append(('fields', entity_type, entity_id, language_id, copy.deepcopy(fields)))
        if entity_type == 'product':
            self.product_translations.setdefault((entity_id, language_id), {}).update(fields)

    def write_slot_config(self, slot_id, language_id, config):
        self.writes.append(('slot', slot_id, language_id, copy.deepcopy(config)))
        self.slot_translations[(slot_id, language_id)] = copy.deepcopy(config)

    def upsert_snippet(self, translation_key, set_id, value):
        self.writes.append(('snippet', translation_key, set_id, value))
        set_snippets = self.snippets.setdefault(set_id, {})
        existing = set_snippets.get(translation_key)
        snippet_id = existing.id if existing else f'{set_id}-{translation_key}'
        set_snippets[translation_key] = Snippet(snippet_id, translation_key, value, set_id)


@pytest.fixture
def shop():
    return InMemoryShop()


@pytest.fixture
def service(app_config, mock_client, shop):
    return TranslationService(app_config, mock_client, shop, shop, shop)


def echo_translation(texts, language_code, system_prompt):
    """Provider stand-in answering every key with a marked translation."""
    return json.dumps({key: f'[{language_code}] {text}' for key, text in texts.items()}, ensure_ascii=False)


class TestProductScenario:

    def test_fenced_response_is_written_once(self, service, shop, mock_client):
        shop.products['p1'] = Product(id='p1', name='Rotes Hemd', description='Ein schönes Hemd')
        mock_client.translate_batch.return_value = (
            '```json\n{"name":"Chemise rouge","description":"Une belle chemise"}\n```'
        )

        result = service.translate_entity(EntityType.PRODUCT, 'p1', ['lang-fr'])

        assert result == {'fr-FR': {'success': True, 'fields': 2}}
        assert shop.writes == [(
            'fields', 'product', 'p1', 'lang-fr',
            {'name': 'Chemise rouge', 'description': 'Une belle chemise'}
        )]

    def test_second_run_is_a_no_op(self, service, shop, mock_client):
        shop.products['p1'] = Product(id='p1', name='Rotes Hemd', description='Ein schönes Hemd')
        mock_client.translate_batch.return_value = '{"name":"Chemise rouge","description":"Une belle chemise"}'

        service.translate_entity(EntityType.PRODUCT, 'p1', ['lang-fr'])
        writes_after_first_run = list(shop.writes)
        result = service.translate_entity(EntityType.PRODUCT, 'p1', ['lang-fr'])

        assert result == {'fr-FR': {'success': True, 'fields': 0, 'skipped': 2}}
        assert mock_client.translate_batch.call_count == 1
        assert shop.writes == writes_after_first_run
        assert shop.product_translations[('p1', 'lang-fr')]['name'] == 'Chemise rouge'


class TestCmsPageScenario:

    def test_slot_config_is_written_for_its_slot(self, service, shop, mock_client):
        text_slot_config = {
            'content': {'source': 'static', 'value': 'Willkommen'},
            'verticalAlign': {'source': 'static', 'value': None},
        }
        shop.pages['page-1'] = CmsPage(id='page-1', sections=[CmsSection(blocks=[
            CmsBlock(slots=[
                CmsSlot(id='slot-image', type='image', config={'media': {'source': 'static', 'value': 'media-1'}}),
                CmsSlot(id='slot-year', type='text', config={'content': {'source': 'static', 'value': '2024'}}),
            ]),
            CmsBlock(slots=[CmsSlot(id='slot-welcome', type='text', config=text_slot_config)]),
        ])])
        mock_client.translate_batch.return_value = '{"slot_2_content":"Welcome"}'

        result = service.translate_entity(EntityType.CMS_PAGE, 'page-1', ['lang-en'])

        assert mock_client.translate_batch.call_args[0][0] == {'slot_2_content': 'Willkommen'}
        assert result == {'en-GB': {'success': True, 'fields': 1}}
        assert shop.writes == [('slot', 'slot-welcome', 'lang-en', {
            'content': {'source': 'static', 'value': 'Welcome'},
            'verticalAlign': {'source': 'static', 'value': None},
        })]
        assert text_slot_config['content']['value'] == 'Willkommen'


class TestSnippetSetScenario:

    @pytest.fixture
    def snippet_sets(self, shop):
        shop.snippet_sets['set-de'] = SnippetSet('set-de', 'de-DE', 'BASE de-DE')
        shop.snippet_sets['set-en'] = SnippetSet('set-en', 'en-GB', 'BASE en-GB')
        shop.snippets['set-de'] = {
            f'storefront.key{i:03d}': Snippet(f'de-{i}', f'storefront.key{i:03d}', f'Text Nummer {i}', 'set-de')
            for i in range(120)
        }
        return shop

    def test_garbage_chunk_only_fails_its_own_keys(self, service, snippet_sets, mock_client):
        responses = iter([None, '<<< not json at all >>>', None])

        def provider(texts, language_code, system_prompt):
            answer = next(responses)
            return answer if answer is not None else echo_translation(texts, language_code, system_prompt)
        mock_client.translate_batch.side_effect = provider

        result = service.translate_entity(EntityType.SNIPPET_SET, 'set-de', target_set_id='set-en')

        assert mock_client.translate_batch.call_count == 3
        assert result['success'] is True
        assert result['total'] == 120
        assert result['translated'] == 70
        assert result['errors'] == 50
        failed = sorted(key for key, detail in result['details'].items() if not detail['success'])
        assert failed == [f'storefront.key{i:03d}' for i in range(50, 100)]
        assert len(snippet_sets.snippets['set-en']) == 70

    def test_rerun_translates_only_what_is_missing(self, service, snippet_sets, mock_client):
        responses = iter([None, '<<< not json at all >>>', None, None])

        def provider(texts, language_code, system_prompt):
            answer = next(responses)
            return answer if answer is not None else echo_translation(texts, language_code, system_prompt)
        mock_client.translate_batch.side_effect = provider

        service.translate_snippet_set('set-de', 'set-en')
        result = service.translate_snippet_set('set-de', 'set-en')

        assert mock_client.translate_batch.call_count == 4
        assert result['translated'] == 50
        assert result['skipped'] == 70
        assert result['errors'] == 0
        assert len(snippet_sets.snippets['set-en']) == 120

    def test_second_run_is_a_no_op(self, service, snippet_sets, mock_client):
        mock_client.translate_batch.side_effect = echo_translation

        service.translate_snippet_set('set-de', 'set-en')
        before = {key: snippet.value for key, snippet in snippet_sets.snippets['set-en'].items()}
        result = service.translate_snippet_set('set-de', 'set-en')

        assert mock_client.translate_batch.call_count == 3
        assert result['translated'] == 0
        assert result['skipped'] == 120
        assert all(detail == {'success': True, 'skipped': True} for detail in result['details'].values())
        assert {key: snippet.value for key, snippet in snippet_sets.snippets['set-en'].items()} == before

    def test_selected_snippets_only(self, service, snippet_sets, mock_client):
        mock_client.translate_batch.side_effect = echo_translation

        result = service.translate_entity(
            EntityType.SNIPPET_SET, 'set-de', target_set_id='set-en', snippet_ids=['de-1', 'de-2']
        )

        assert result['total'] == 2
        assert snippet_sets.snippets['set-en']['storefront.key001'].value == '[en-GB] Text Nummer 1'
