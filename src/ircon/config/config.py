import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('ircon', 'default')
    'ircon.default'
    >>> config_flavor('ircon')
    'ircon'
    """
    return name if not flavor else name + '.' + flavor


def config_filename(name, directory):
    """ The path of the named config file in the given directory. """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True, spec=False) -> ConfigObj:
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :param spec:        when True, the file is parsed as a validation schema
    :return: The ConfigObj instance for the file, empty if the file is optional and missing.
    """
    if not must_exist and not os.path.exists(file):
        return ConfigObj(_inspec=True) if spec else ConfigObj()
    try:
        if spec:
            return ConfigObj(file, _inspec=True, file_error=must_exist)
        return ConfigObj(file, interpolation='Template', file_error=must_exist)
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, flavor=None, spec=False) -> ConfigObj:
    """
    Loads an optional specialization of a config file, named after the base, followed by a
    period and the flavor.
    """
    return load_config_file_base(config_filename(config_flavor(name, flavor), directory), False, spec)


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
    """ formats the failures reported by ConfigObj.validate() """
    failures = []
    for sections, key, error in flatten_errors(config, result):
        location = '.'.join(sections + ([key] if key is not None else []))
        failures.append('%s: %s' % (location, error if error else 'missing'))
    return ', '.join(failures)


def load_config(name, directory, user_directory='~'):
    """
    Loads all the configuration files that relate to the given name, later files overriding
    earlier ones:
        - the default specialization    <name>.default.cfg
        - the platform specialization   <name>.<os>.cfg
        - the user override             ~/<name>.cfg
        - the base configuration        <name>.cfg
    The merged configuration is validated, and converted to the declared types, against the
    schema in <name>.schema.cfg.
    :raises ConfigObjError: if the merged configuration fails validation
    """
    config = ConfigObj()
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(config_flavor_file(name, os.path.expanduser(user_directory)))
    config.merge(config_flavor_file(name, directory))

    config.configspec = config_flavor_file(name, directory, 'schema', spec=True)
    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s"
                             % (name, describe_errors(config, result)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:    The root configuration
    :param path:    An iterable of the section names to descend through
    :return: The section identified by the path, or None if there is no such section
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf(conf: Section, target):
    """
    Sets each attribute of the target that has a value in the section.
    Values with no matching attribute are ignored.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


def apply(target, config_path, config_name, directory):
    """
    Applies values from a section of a configuration to a target object.
    :param target:      The object to receive the values defined
    :param config_path: The dotted path of the section holding the values.
    :param config_name: The configuration to load.
    :param directory:   the directory containing the config files
    """
    conf = fetch_conf_path(load_config(config_name, directory), config_path.split('.'))
    if conf:
        apply_conf(conf, target)


def configure_module(module, config_name=None):
    """
    Applies configuration to the globals of a module. The values are taken from the section
    named after the module's qualified name, e.g. [ircon] [[settings]] for ircon.settings.
    The config files are found in the module's directory, and named after config_name, which
    defaults to the module's own name.
    """
    fqname = module.__name__
    if not config_name:
        config_name = fqname.split('.')[-1]
    apply(module, fqname, config_name, os.path.dirname(module.__file__))
