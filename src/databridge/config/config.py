import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'

# where the packaged configuration files live
config_dir = os.path.dirname(os.path.abspath(__file__))


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=config_dir):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def user_config_filename(name):
    """ the hidden per-user configuration file in the home directory """
    return os.path.expanduser('~/.' + name + config_extension)


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


def config_flavor_file(name, directory=config_dir, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing specialization is empty.
    :param name:    The name of the base configuration
    :param subpart: The name of the specialization.
    :return: The ConfigObj for the configuration file.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    return load_config_file_base(file, False)


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


def describe_errors(config, result):
    """
    Lists each key or section that failed validation.
    :param config: the validated configuration
    :param result: the result returned by ConfigObj.validate
    """
    errors = []
    for section_list, key, res in flatten_errors(config, result):
        section = ', '.join(section_list)
        if key is None:
            errors.append('the section "%s" is missing' % section)
        elif res is False:
            errors.append('the "%s" key in the section "%s" is missing' % (key, section))
        else:
            errors.append('the "%s" key in the section "%s" failed validation: %s' % (key, section, res))
    return errors


def load_config(name, directory=config_dir, user_file=None, home_file=None):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are loaded in this order, later ones overriding earlier ones:
        - the default specialization
        - the platform specialization
        - the user's file in the home directory
        - the file given explicitly, which must exist
        The configurations are flattened into a single configuration, and then validated
        against a configuration specialization "schema".
    :param name: the base name of the configuration files
    :param directory: the location of the packaged configuration files
    :param user_file: an explicitly chosen configuration file, or None
    :param home_file: the file in the home directory, when not the default
    :return: the validated ConfigObj
    """
    home_file = home_file or user_config_filename(name)
    layers = [
        config_flavor_file(name, directory, 'default'),
        config_flavor_file(name, directory, os_name()),
        load_config_file_base(home_file, must_exist=False)
    ]
    if user_file:
        layers.append(load_config_file_base(user_file))

    config = ConfigObj(configspec=config_filename(config_flavor(name, 'schema'), directory))
    for layer in layers:
        config.merge(layer)

    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        errors = describe_errors(config, result)
        for error in errors:
            logger.error(error)
        raise ConfigObjError("the config file %s failed validation: %s" % (name, '; '.join(errors)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to resolve
    :return: The configuration object identified by the path, or None
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf
