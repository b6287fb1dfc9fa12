"""
Provides project-level commands. Commands are run via `python setup.py <command> [args]`

Commands available:

- test: runs the unit tests found beside the modules (files named *_test.py)
"""

from setuptools import setup, Command

import os


class RunInRootCommand(Command):
    user_options = []

    def initialize_options(self):
        self.cwd = None

    def finalize_options(self):
        self.cwd = os.getcwd()

    def run(self):
        assert os.getcwd() == self.cwd, 'Must be in package root: %s' % self.cwd
        self.runcmd()

    def runcmd(self):
        pass


class TestCommand(RunInRootCommand):
    description = "runs the unit tests"

    def runcmd(self):
        os.system('"pytest" src')


setup(
    name='commlink',
    version='0.0.1',
    description='Raw byte communication links over TCP for telemetry applications.',
    url='',
    author='',
    author_email='',
    license='GPLv3',
    package_dir={'': 'src'},
    packages=['commlink', 'commlink.config', 'commlink.link', 'commlink.support'],
    package_data={'commlink.config': ['*.cfg']},
    install_requires=[
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=2.0',
            'timeout-decorator>=0.5',
            'pytest',
        ]
    },
    zip_safe=False,
    cmdclass={
        'test': TestCommand
    }
)
