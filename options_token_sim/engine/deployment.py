#!/usr/bin/env python3
"""
Deployment factory for configured options token systems.

Wires the tokens, the TWAP feed, the oracle, the discount strategy and the
options token together from a DeploymentConfig, seeds the feed with
liquidity and lets enough time pass for the oracle window to fill.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from ..config.schemas import DeploymentConfig, FeedType, create_default_config
from ..core.chain import Address, Chain
from ..core.fixed_point import MAX_UINT256, WAD, to_wad
from ..core.options_token import OptionsToken
from ..core.token import Token
from ..exercise.discount import DiscountExercise
from ..feeds.pair import TwapPair
from ..feeds.weighted_pool import WeightedPool2Tokens
from ..oracles.base import BaseOracle
from ..oracles.pair_oracle import PairTwapOracle
from ..oracles.weighted_pool_oracle import WeightedPoolOracle

logger = logging.getLogger(__name__)

Feed = Union[TwapPair, WeightedPool2Tokens]


@dataclass
class OptionsDeployment:
    """Handles to every deployed component"""
    config: DeploymentConfig
    chain: Chain
    deployer: Address
    token_admin: Address
    treasury: Address
    underlying: Token
    payment: Token
    options_token: OptionsToken
    feed: Feed
    oracle: BaseOracle
    exercise: DiscountExercise
    option_id: int
    accounts: Dict[str, Address] = field(default_factory=dict)

    def fund(self, account: Address, options: int = 0, payment: int = 0, underlying: int = 0) -> None:
        """Issue options and mint settlement tokens to account (WAD amounts)"""
        if options:
            with self.chain.acting_as(self.token_admin):
                self.options_token.mint(account, options)
        with self.chain.acting_as(self.deployer):
            if payment:
                self.payment.mint(account, payment)
            if underlying:
                self.underlying.mint(account, underlying)

    def approve_all(self, account: Address) -> None:
        """Let the strategy and the feed pull account's tokens"""
        with self.chain.acting_as(account):
            self.payment.approve(self.exercise.address, MAX_UINT256)
            self.payment.approve(self.feed.address, MAX_UINT256)
            self.underlying.approve(self.feed.address, MAX_UINT256)


class DeploymentFactory:
    """Factory for deploying configured options token systems"""

    @staticmethod
    def deploy(config: Optional[DeploymentConfig] = None, chain: Optional[Chain] = None,
               warm_up: bool = True) -> OptionsDeployment:
        """
        Deploy a complete system from configuration

        Args:
            config: Validated deployment configuration
            chain: Existing chain to deploy on (a fresh one by default)
            warm_up: Advance time until the oracle window is served

        Returns:
            OptionsDeployment with every component wired up
        """
        config = config or create_default_config()
        chain = chain or Chain()

        deployer = chain.account("deployer")
        token_admin = chain.account("token_admin")
        treasury = chain.account(config.exercise.treasury)
        accounts = {"deployer": deployer, "token_admin": token_admin, config.exercise.treasury: treasury}
        fee_recipients = []
        for label in config.exercise.fee_recipients:
            if label not in accounts:
                accounts[label] = chain.account(label)
            fee_recipients.append(accounts[label])

        underlying = Token(chain, config.underlying.name, config.underlying.symbol, owner=deployer)
        payment = Token(chain, config.payment.name, config.payment.symbol, owner=deployer)
        options_token = OptionsToken(chain, config.options.name, config.options.symbol,
                                     owner=deployer, token_admin=token_admin)

        with chain.acting_as(deployer):
            underlying.set_minter(deployer, True)
            payment.set_minter(deployer, True)

        feed = DeploymentFactory._create_feed(config, chain, underlying, payment)
        DeploymentFactory._seed_liquidity(config, chain, deployer, feed, underlying, payment)

        if warm_up:
            DeploymentFactory._warm_up(config, chain, deployer, feed)

        oracle = DeploymentFactory._create_oracle(config, chain, deployer, feed, underlying)

        exercise = DiscountExercise(
            chain, deployer, options_token, payment, underlying, oracle, treasury,
            fee_recipients=fee_recipients, fee_bps=config.exercise.fee_bps
        )

        with chain.acting_as(deployer):
            underlying.set_minter(exercise.address, True)
            option_id = options_token.add_option(exercise)

        logger.info("Deployed %s on %s feed, option id %d",
                    config.options.symbol, config.pool.feed_type.value, option_id)

        return OptionsDeployment(
            config=config,
            chain=chain,
            deployer=deployer,
            token_admin=token_admin,
            treasury=treasury,
            underlying=underlying,
            payment=payment,
            options_token=options_token,
            feed=feed,
            oracle=oracle,
            exercise=exercise,
            option_id=option_id,
            accounts=accounts,
        )

    @staticmethod
    def _create_feed(config: DeploymentConfig, chain: Chain, underlying: Token, payment: Token) -> Feed:
        pool = config.pool
        if pool.feed_type == FeedType.WEIGHTED_POOL:
            weight0 = to_wad(pool.underlying_weight)
            return WeightedPool2Tokens(chain, underlying, payment, weight0, WAD - weight0,
                                       fee_bps=pool.fee_bps)
        return TwapPair(chain, underlying, payment, stable=pool.stable, fee_bps=pool.fee_bps)

    @staticmethod
    def _seed_liquidity(config: DeploymentConfig, chain: Chain, deployer: Address, feed: Feed,
                        underlying: Token, payment: Token) -> None:
        amount0 = to_wad(config.pool.underlying_reserve)
        amount1 = to_wad(config.pool.payment_reserve)
        with chain.acting_as(deployer):
            underlying.mint(deployer, amount0)
            payment.mint(deployer, amount1)
            underlying.approve(feed.address, MAX_UINT256)
            payment.approve(feed.address, MAX_UINT256)
            feed.add_liquidity(amount0, amount1)

    @staticmethod
    def _warm_up(config: DeploymentConfig, chain: Chain, deployer: Address, feed: Feed) -> None:
        """Let a full window of history accumulate"""
        window = config.oracle.secs + config.oracle.ago
        if isinstance(feed, TwapPair):
            window = max(window, feed.period_size)
        chain.mine(window + 1)
        if isinstance(feed, TwapPair):
            with chain.acting_as(deployer):
                feed.sync()

    @staticmethod
    def _create_oracle(config: DeploymentConfig, chain: Chain, deployer: Address, feed: Feed,
                       underlying: Token) -> BaseOracle:
        oracle = config.oracle
        min_price = to_wad(oracle.min_price)
        if isinstance(feed, WeightedPool2Tokens):
            return WeightedPoolOracle(chain, deployer, feed, underlying, oracle.multiplier,
                                      oracle.secs, oracle.ago, min_price)
        return PairTwapOracle(chain, deployer, feed, underlying, oracle.multiplier,
                              oracle.secs, min_price, ago=oracle.ago)
