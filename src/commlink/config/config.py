import os
import platform

from configobj import ConfigObj, ConfigObjError, flatten_errors
from validate import Validator

from commlink.link.tcplink import TCPLink

# The default extension for configuration files
config_extension = '.cfg'

# the directory holding the configuration files shipped with the package
package_directory = os.path.dirname(__file__)

# the name of the shipped link configuration
LINK_CONFIG = 'tcplink'

# the configured keys, named as the TCPLink arguments they supply
LINK_SETTINGS = ('host', 'port', 'as_server', 'connect_timeout', 'poll_interval', 'rate_buffer_size', 'debug_io')


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('tcplink')
    'tcplink'
    >>> config_flavor('tcplink', 'schema')
    'tcplink.schema'
    """
    return name if not flavor else name + '.' + flavor


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory or package_directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    """
    return load_config_file_base(config_filename(config_flavor(name, subpart), directory), False)


def load_schema(name, directory) -> ConfigObj:
    """ loads the validation schema for the named configuration. The schema must exist. """
    file = config_filename(config_flavor(name, 'schema'), directory)
    try:
        return ConfigObj(file, file_error=True, list_values=False, _inspec=True)
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def load_config(name, directory=None, user_directory=None):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later ones taking precedence:
        - the default specialization
        - the platform specialization
        - the user override, from the user's home directory
        - the base configuration
        The merged configuration is validated against the schema specialization, which
        also supplies the defaults for values that are not given.
    :param directory: the location of the configuration files
    :param user_directory: the location of the user override. Defaults to the home directory.
    :return: the validated configuration
    """
    directory = directory or package_directory
    user_directory = user_directory or os.path.expanduser('~')
    config = ConfigObj()
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(config_flavor_file(name, user_directory))
    config.merge(config_flavor_file(name, directory))

    config.configspec = load_schema(name, directory)
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        failures = ['.'.join(sections + [key or '']) for sections, key, _ in flatten_errors(config, result)]
        raise ConfigObjError("the config file %s failed validation %s" % (name, ', '.join(failures)))
    return config


def fetch_conf_path(conf, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to resolve
    :return: The configuration section identified by the path, or None if any part is missing
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def link_settings(conf, section='tcp'):
    """
    Extracts the link settings from a validated configuration.
    :param conf:    the configuration, as returned by load_config
    :param section: the dotted path of the section holding the settings
    :return: a dict of the settings present in the section
    """
    settings = fetch_conf_path(conf, section.split('.'))
    if settings is None:
        raise ConfigObjError("no section %s in the link configuration" % section)
    return {k: settings[k] for k in LINK_SETTINGS if k in settings}


def link_from_config(name=LINK_CONFIG, directory=None, section='tcp', user_directory=None, **overrides):
    """
    Creates a TCPLink from configuration files.
    :param overrides: settings that take precedence over the configured values
    """
    settings = link_settings(load_config(name, directory, user_directory), section)
    settings.update(overrides)
    host = settings.pop('host')
    port = settings.pop('port')
    return TCPLink(host, port, **settings)
