import os, sys
from setuptools import setup, find_namespace_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Intended Audience :: System Administrators',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: System :: Archiving'
]

def get_version():
    out = "0.0.dev0"
    pkgdir = os.environ.get('PACKAGE_DIR', '.')
    versfile = os.path.join(pkgdir, 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    return out

def write_version_mod(version):
    dspacedir = 'dspace'
    for pkg in [f for f in os.listdir(dspacedir) \
                  if not f.startswith('_') and not f.startswith('.')
                     and os.path.isdir(os.path.join(dspacedir, f))]:
        print("setting version for dspace."+pkg)
        versmodf = os.path.join(dspacedir, pkg, "version.py")
        with open(versmodf, 'w') as fd:
            fd.write('"""')
            fd.write("""
An identification of the subsystem version.  Note that this module file gets 
(over-) written by the build process.  
""")
            fd.write('"""\n\n')
            fd.write('__version__ = "')
            fd.write(version)
            fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version())
        _build.run(self)

setup(name='dspace.authz',
      version=get_version(),
      description="dspace.authz: bulk access control and derivative policy management for a DSpace-style repository",
      scripts=[ 'scripts/authzadm.py' ],
      packages=find_namespace_packages(include=['dspace.*'], exclude=['dspace.*.data']),
      install_requires=[ 'pyyaml', 'pymongo' ],
      extras_require={ 'test': [ 'pytest' ] },
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)
