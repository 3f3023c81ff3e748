"""Translation dispatch layer for translation_relay.

This package sends text to a pool of interchangeable, unreliable HTTP
translation endpoints and hands back a translation or ``None``.  It does
not translate anything itself.

Package structure
-----------------
registry.py        EndpointRegistry    : ordered endpoint list + routing state.
normalizer.py      ResponseNormalizer  : turns a response body into a
                   translation or ``None``.
codec.py           LineStructureCodec  : newline placeholders and blank-line
                   reconstruction.
transport.py       EndpointClient      : POST-then-GET attempt against one
                   endpoint (httpx).
router.py          FailoverRouter      : rotation, promotion and demotion
                   across the endpoint pool.
cache.py           TranslationCache    : ``target:text`` cache mirrored to a
                   key-value store.
dispatch_queue.py  DispatchQueue       : one worker, one request in flight,
                   throttled.
feed.py            ConfigFeedListener  : applies pushed endpoint lists.
service.py         TranslationDispatcher: the single public entry point.

Typical use
-----------
::

    async with TranslationDispatcher.from_config() as dispatcher:
        ja = await dispatcher.translate_text("Hello\\n\\nWorld", "ja")
        if ja is None:
            ...  # show the original text
"""

from translation_relay.translation.service import TranslationDispatcher

__all__ = ["TranslationDispatcher"]
