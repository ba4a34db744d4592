"""End-to-end generation of test data on a mesh."""

import logging
from sphere_testdata.geometry.mesh import Mesh
from sphere_testdata.geometry.rectilinear import resolve_output_layout
from sphere_testdata.samplers import (
    BaseSampler, SamplingConfig, TestData,
    FiniteVolumeSampler, GLLPointwiseSampler, GLLIntegratedSampler,
)

logger = logging.getLogger(__name__)

def get_sampler(config: SamplingConfig) -> BaseSampler:
    """Select the sampler for the mode flags in `config`."""
    config.validate()
    if config.gll:
        return GLLPointwiseSampler(config)
    elif config.gll_integrate:
        return GLLIntegratedSampler(config)
    return FiniteVolumeSampler(config)

def generate_test_data(mesh: Mesh, config: SamplingConfig) -> TestData:
    """
    Resolve the output layout of `mesh` and sample the configured field.

    Args:
        mesh: Input mesh, with any stored grid metadata attached.
        config: Sampling options.

    Returns:
        TestData holding the flat values and their final layout.
    """
    sampler = get_sampler(config)

    layout = resolve_output_layout(
        mesh.metadata,
        mesh.n_faces,
        flip=config.flip_rectilinear,
        level=config.level,
        gll=config.gll,
        gll_integrate=config.gll_integrate,
    )

    logger.info("Generating test data (%s, field %s)", type(sampler).__name__, sampler.field.name)
    mesh.calculate_face_areas(config.concave)
    return sampler.sample(mesh, layout)
