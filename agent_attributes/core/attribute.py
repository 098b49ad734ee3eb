"""This module implements the storage of attributes attached to the data
reported by the agent. Attributes are created either by the agent itself or
by the user through the API, and each has its destinations resolved against
an AttributeConfig at the time it is added.

"""

import logging

from collections import namedtuple

from agent_attributes.core.attribute_filter import resolve

_logger = logging.getLogger(__name__)

MAX_NUM_USER_ATTRIBUTES = 64
MAX_ATTRIBUTE_KEY_LENGTH = 255
MAX_ATTRIBUTE_VALUE_LENGTH = 255

Attribute = namedtuple('Attribute', ['name', 'value', 'destinations'])


def truncate(text, maxsize=MAX_ATTRIBUTE_VALUE_LENGTH):
    """Limit text to maxsize bytes. Unicode strings are measured in their
    UTF-8 encoding, and any character left incomplete by the cut is dropped
    rather than split.

    """

    if isinstance(text, str):
        encoded = text.encode('utf-8')
        if len(encoded) <= maxsize:
            return text
        return encoded[:maxsize].decode('utf-8', 'ignore')

    return text[:maxsize]


def _valid_name(name):
    return isinstance(name, str) and len(name) > 0


def _valid_long(value):
    # Floats and numeric strings are not converted.
    return isinstance(value, int)


class AttributeStore(object):

    # User and agent attributes are kept apart so that a collision between
    # the two is resolved by whatever consumes them rather than here. Only
    # the user attributes are limited in number.

    def __init__(self, config):
        self.config = config
        self.user_attributes = []
        self.agent_attributes = []

    def __repr__(self):
        return '<AttributeStore: user: %d, agent: %d>' % (
                len(self.user_attributes), len(self.agent_attributes))

    def _create_attribute(self, default_destinations, name, value):
        if len(name.encode('utf-8')) > MAX_ATTRIBUTE_KEY_LENGTH:
            _logger.debug('Attribute name exceeds maximum length. '
                    'Truncating: %r', name)
            name = truncate(name, MAX_ATTRIBUTE_KEY_LENGTH)

        # Only strings are truncated. Any other value is held as given.
        if isinstance(value, (str, bytes)):
            value = truncate(value, MAX_ATTRIBUTE_VALUE_LENGTH)

        destinations = resolve(default_destinations, name, self.config)

        return Attribute(name, value, destinations)

    def user_add(self, default_destinations, name, value):
        if not _valid_name(name):
            _logger.debug('Invalid user attribute name %r. Dropping '
                    'attribute.', name)
            return False

        if len(self.user_attributes) >= MAX_NUM_USER_ATTRIBUTES:
            _logger.debug('Maximum number of user attributes already '
                    'added. Dropping attribute: %r=%r', name, value)
            return False

        attribute = self._create_attribute(default_destinations, name, value)
        self.user_attributes.append(attribute)
        return True

    def user_add_string(self, default_destinations, name, value):
        return self.user_add(default_destinations, name, str(value))

    def user_add_long(self, default_destinations, name, value):
        if not _valid_long(value):
            _logger.debug('Invalid value %r for user attribute %r. '
                    'Dropping attribute.', value, name)
            return False

        return self.user_add(default_destinations, name, value)

    def _agent_add(self, default_destinations, name, value):
        if not _valid_name(name):
            _logger.debug('Invalid agent attribute name %r. Dropping '
                    'attribute.', name)
            return False

        attribute = self._create_attribute(default_destinations, name, value)
        self.agent_attributes.append(attribute)
        return True

    def agent_add_long(self, default_destinations, name, value):
        if not _valid_long(value):
            _logger.debug('Invalid value %r for agent attribute %r. '
                    'Dropping attribute.', value, name)
            return False

        return self._agent_add(default_destinations, name, value)

    def agent_add_string(self, default_destinations, name, value):
        return self._agent_add(default_destinations, name, str(value))

    def user_to_obj(self, destinations):
        return _attributes_to_obj(self.user_attributes, destinations)

    def agent_to_obj(self, destinations):
        return _attributes_to_obj(self.agent_attributes, destinations)

    def destroy(self):
        del self.user_attributes[:]
        del self.agent_attributes[:]
        self.config = None


def _attributes_to_obj(attributes, destinations):
    # A name may appear more than once, in which case the attribute added
    # last is the one reported.

    result = {}

    for attribute in attributes:
        if attribute.destinations & destinations:
            result[attribute.name] = attribute.value

    return result
