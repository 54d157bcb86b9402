from setuptools import setup, find_packages

setup(
    name='besttree',
    version='1.0',
    packages=find_packages(exclude=['tests', 'experiments']),
    py_modules=[
        'binning',
        'errors',
        'gbdt_trainer',
        'objective',
        'sampling',
        'split_search',
        'tree_builder',
    ],
    description='Best-first histogram regression trees for gradient boosting',
    python_requires='>=3.10',
    install_requires=['numpy>=1.22'],
    extras_require={'test': ['pytest>=7']},
)
