"""This module provides a structure to hang the attribute related
configuration settings. We use an empty class structure and manually
populate it with the global defaults. Settings read from the agent
configuration are then applied over the top of a copy of the defaults, and
the result is used to build the AttributeConfig against which attribute
destinations are resolved.

"""

import copy
import logging

from agent_attributes.core.attribute_filter import (AttributeConfig,
        DST_ALL, DST_NONE, DST_TRANSACTION_EVENTS, DST_TRANSACTION_TRACER,
        DST_ERROR_COLLECTOR, DST_BROWSER_MONITORING)


_logger = logging.getLogger(__name__)

# The Settings objects and the global default settings. We create a
# distinct type for each sub category of settings so that an error when
# accessing a non-existent setting is more descriptive and identifies the
# category of settings.


class Settings(object):
    def __repr__(self):
        return repr(self.__dict__)

    def __iter__(self):
        return iter(flatten_settings(self).items())

    def __contains__(self, item):
        return hasattr(self, item)


def create_settings():
    return type('Settings', (Settings,), {})()


class TopLevelSettings(Settings):
    pass


class AttributesSettings(Settings):
    pass


class TransactionEventsSettings(Settings):
    pass


class TransactionEventsAttributesSettings(Settings):
    pass


class TransactionTracerSettings(Settings):
    pass


class TransactionTracerAttributesSettings(Settings):
    pass


class ErrorCollectorSettings(Settings):
    pass


class ErrorCollectorAttributesSettings(Settings):
    pass


class BrowserMonitorSettings(Settings):
    pass


class BrowserMonitorAttributesSettings(Settings):
    pass


_settings = TopLevelSettings()
_settings.attributes = AttributesSettings()
_settings.transaction_events = TransactionEventsSettings()
_settings.transaction_events.attributes = TransactionEventsAttributesSettings()
_settings.transaction_tracer = TransactionTracerSettings()
_settings.transaction_tracer.attributes = TransactionTracerAttributesSettings()
_settings.error_collector = ErrorCollectorSettings()
_settings.error_collector.attributes = ErrorCollectorAttributesSettings()
_settings.browser_monitoring = BrowserMonitorSettings()
_settings.browser_monitoring.attributes = BrowserMonitorAttributesSettings()

_settings.attribute_config = None

_settings.attributes.enabled = True
_settings.attributes.exclude = []
_settings.attributes.include = []

_settings.transaction_events.attributes.enabled = True
_settings.transaction_events.attributes.exclude = []
_settings.transaction_events.attributes.include = []

_settings.transaction_tracer.attributes.enabled = True
_settings.transaction_tracer.attributes.exclude = []
_settings.transaction_tracer.attributes.include = []

_settings.error_collector.attributes.enabled = True
_settings.error_collector.attributes.exclude = []
_settings.error_collector.attributes.include = []

_settings.browser_monitoring.attributes.enabled = False
_settings.browser_monitoring.attributes.exclude = []
_settings.browser_monitoring.attributes.include = []

# Each section that can switch attributes off for its own destination.

_enabled_templates = (
    ('transaction_events.attributes.enabled', DST_TRANSACTION_EVENTS),
    ('transaction_tracer.attributes.enabled', DST_TRANSACTION_TRACER),
    ('error_collector.attributes.enabled', DST_ERROR_COLLECTOR),
    ('browser_monitoring.attributes.enabled', DST_BROWSER_MONITORING),
)

# "Rule Templates" below are used for building the destination modifiers.
#
# Each tuple includes:
#   1. Setting name
#   2. Bitfield value for destination for that setting.
#   3. Boolean that represents whether the setting is an "include" or not.

_rule_templates = (
    ('attributes.include', DST_ALL, True),
    ('attributes.exclude', DST_ALL, False),
    ('transaction_events.attributes.include', DST_TRANSACTION_EVENTS, True),
    ('transaction_events.attributes.exclude', DST_TRANSACTION_EVENTS, False),
    ('transaction_tracer.attributes.include', DST_TRANSACTION_TRACER, True),
    ('transaction_tracer.attributes.exclude', DST_TRANSACTION_TRACER, False),
    ('error_collector.attributes.include', DST_ERROR_COLLECTOR, True),
    ('error_collector.attributes.exclude', DST_ERROR_COLLECTOR, False),
    ('browser_monitoring.attributes.include', DST_BROWSER_MONITORING, True),
    ('browser_monitoring.attributes.exclude', DST_BROWSER_MONITORING, False),
)


def global_settings():
    """This returns the default global settings. Making changes to the
    settings object returned by this function will not have any effect on
    settings already passed through finalize_attribute_settings(), as
    those work on a snapshot.

    """

    return _settings


def flatten_settings(settings):
    """This returns dictionary of settings flattened into a single
    key namespace.

    """

    def _flatten(settings, o, name=None):
        for key, value in vars(o).items():
            if key.startswith('_'):
                key = key[1:]

            if name:
                key = '%s.%s' % (name, key)

            if isinstance(value, Settings):
                _flatten(settings, value, key)
            else:
                settings[key] = value

    flattened = {}
    _flatten(flattened, settings)
    return flattened


def apply_config_setting(settings_object, name, value):
    """Apply a setting to the settings object where name is a dotted path.
    If there is no pre existing settings object for a sub category then
    one will be created and added automatically.

    >>> settings = global_settings()
    >>> apply_config_setting(settings, 'attributes.exclude', ['password'])

    """

    target = settings_object
    fields = name.split('.', 1)

    while len(fields) > 1:
        if not hasattr(target, fields[0]):
            setattr(target, fields[0], create_settings())
        target = getattr(target, fields[0])
        fields = fields[1].split('.', 1)

    setattr(target, fields[0], value)


def create_attribute_config(flattened_settings):
    """Builds an AttributeConfig from a dictionary of flattened settings.
    Settings which are missing fall back to leaving everything enabled
    with no rules.

    """

    config = AttributeConfig()

    if not flattened_settings.get('attributes.enabled', True):
        config.disable_destinations(DST_ALL)

    for setting_name, destination in _enabled_templates:
        if not flattened_settings.get(setting_name, True):
            config.disable_destinations(destination)

    for setting_name, destination, is_include in _rule_templates:
        for match in flattened_settings.get(setting_name) or ():
            if is_include:
                config.modify_destinations(match, destination, DST_NONE)
            else:
                config.modify_destinations(match, DST_NONE, destination)

    _logger.debug('Created attribute configuration %r.', config)

    return config


def finalize_attribute_settings(settings=_settings):
    """Take a snapshot of the settings and attach the attribute
    configuration built from them.

    """

    snapshot = copy.deepcopy(settings)

    snapshot.attribute_config = create_attribute_config(
            flatten_settings(snapshot))

    return snapshot
