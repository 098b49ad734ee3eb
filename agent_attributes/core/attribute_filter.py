import logging

_logger = logging.getLogger(__name__)

# Attribute "destinations" represented as bitfields.

DST_NONE = 0x0
DST_ALL  = 0xF
DST_TRANSACTION_EVENTS = 1 << 0
DST_TRANSACTION_TRACER = 1 << 1
DST_ERROR_COLLECTOR    = 1 << 2
DST_BROWSER_MONITORING = 1 << 3


class AttributeConfig(object):

    # Decide which destinations an attribute may reach.
    #
    # An AttributeConfig holds a set of AttributeFilterRules keyed by their
    # match string, along with a bitfield of destinations which have been
    # disabled outright. It is built up during configuration by calling
    # disable_destinations() and modify_destinations(), and is then shared
    # read only by every AttributeStore created against it.
    #
    # The algorithm for resolving the destinations of an attribute is:
    #
    #   1. Start with the bitfield of default destinations passed in to
    #      apply().
    #
    #   2. Find the most specific rule matching the attribute name. An
    #      exact rule beats any wildcard rule, and a longer wildcard
    #      prefix beats a shorter one.
    #
    #   3. If there is such a rule, add its include destinations and then
    #      remove its exclude destinations. Exclude wins when both are set.
    #
    #   4. Remove the disabled destinations. Nothing a rule says can
    #      reenable a disabled destination.

    def __init__(self):
        self.disabled_destinations = DST_NONE
        self._rules = {}

    def __repr__(self):
        return "<AttributeConfig: disabled: %s, rules: %s>" % (
                bin(self.disabled_destinations), self.rules)

    @property
    def rules(self):
        # Most specific first.
        return tuple(sorted(self._rules.values(), reverse=True))

    def disable_destinations(self, destinations):
        self.disabled_destinations |= (destinations & DST_ALL)

    def modify_destinations(self, match, include, exclude):
        if not match or not isinstance(match, str):
            _logger.debug('Ignoring attribute destination modifier with '
                    'invalid match %r.', match)
            return

        rule = self._rules.get(match)

        if rule is None:
            rule = AttributeFilterRule(match, len(self._rules))
            self._rules[match] = rule

        rule.include |= (include & DST_ALL)
        rule.exclude |= (exclude & DST_ALL)

    def destroy(self):
        self._rules.clear()

    def find_rule(self, name):
        best = None

        if not isinstance(name, str):
            return best

        for rule in self._rules.values():
            if rule.name_match(name) and (best is None or rule > best):
                best = rule

        return best

    def apply(self, name, default_destinations):
        destinations = default_destinations & DST_ALL

        rule = self.find_rule(name)

        if rule is not None:
            destinations = (destinations | rule.include) & ~rule.exclude

        destinations &= ~self.disabled_destinations

        return destinations


class AttributeFilterRule(object):

    def __init__(self, match, order=0):
        self.match = match
        self.is_wildcard = match.endswith('*')
        self.name = match[:-1] if self.is_wildcard else match
        self.include = DST_NONE
        self.exclude = DST_NONE
        self.order = order

    def _as_sortable(self):

        # Represent AttributeFilterRule as a tuple that will sort properly.
        #
        # Sorting rules:
        #
        #   1. Exact rules sort above wildcard rules. Only one exact rule can
        #      ever match a given name, and it always takes precedence.
        #
        #   2. Among wildcard rules a longer prefix sorts above a shorter
        #      one, being the more specific match.
        #
        #   3. Two distinct match strings cannot otherwise compare equal,
        #      but should it happen the earlier created rule sorts higher so
        #      the outcome never depends on dictionary iteration.

        return (not self.is_wildcard, len(self.name), -self.order)

    def __eq__(self, other):
        return self._as_sortable() == other._as_sortable()

    def __ne__(self, other):
        return self._as_sortable() != other._as_sortable()

    def __lt__(self, other):
        return self._as_sortable() < other._as_sortable()

    def __le__(self, other):
        return self._as_sortable() <= other._as_sortable()

    def __gt__(self, other):
        return self._as_sortable() > other._as_sortable()

    def __ge__(self, other):
        return self._as_sortable() >= other._as_sortable()

    def __hash__(self):
        return hash(self.match)

    def __repr__(self):
        return '(%s, %s, %s, %s)' % (self.match, bin(self.include),
                bin(self.exclude), self.is_wildcard)

    def name_match(self, name):
        if self.is_wildcard:
            return name.startswith(self.name)
        else:
            return self.name == name


def resolve(default_destinations, name, config):
    """Returns the destinations an attribute called name is sent to, given
    the destinations it would have by default. A config of None behaves as
    an empty configuration.

    """

    if config is None:
        return default_destinations & DST_ALL

    return config.apply(name, default_destinations)
